"""Decide whether the current event should deploy."""
from __future__ import annotations

import dataclasses
import os
import pathlib
import subprocess
from typing import Mapping, Optional, Union


@dataclasses.dataclass(frozen=True)
class TriggerEvent:
    name: str
    ref: str

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        workspace: Optional[Union[str, pathlib.Path]] = None,
    ) -> "TriggerEvent":
        """Read the event from GitHub Actions variables.

        Outside CI the run is treated as a local push of the branch checked out
        in ``workspace`` (the current directory by default).
        """
        environ = os.environ if environ is None else environ
        name = environ.get("GITHUB_EVENT_NAME")
        ref = environ.get("GITHUB_REF")
        if name or ref:
            return cls(name=name or "", ref=ref or "")
        return cls(name="push", ref=_local_branch_ref(workspace))


def _local_branch_ref(workspace: Optional[Union[str, pathlib.Path]] = None) -> str:
    try:
        completed = subprocess.run(
            ["git", "rev-parse", "--abbrev-ref", "HEAD"],
            cwd=None if workspace is None else str(workspace),
            capture_output=True,
            text=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError):
        return ""
    branch = completed.stdout.strip()
    return f"refs/heads/{branch}" if branch and branch != "HEAD" else ""


def should_deploy(event: TriggerEvent, branch: str = "main") -> bool:
    if event.name != "push":
        return False
    return event.ref in (f"refs/heads/{branch}", branch)
