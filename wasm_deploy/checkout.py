"""Checkout step: make sure the repository is present in the workspace."""
from __future__ import annotations

import logging
import pathlib
import subprocess
from typing import Optional, Union

logger = logging.getLogger(__name__)


def checkout(
    workspace: Union[str, pathlib.Path],
    repo_url: Optional[str] = None,
    branch: str = "main",
) -> pathlib.Path:
    """Make sure the source tree is present and return its resolved path.

    With ``repo_url`` a shallow clone of ``branch`` is made when the workspace is
    missing or empty. In CI the runner has already checked the repository out.
    """
    resolved = pathlib.Path(workspace).expanduser().resolve()

    if repo_url and (not resolved.exists() or (resolved.is_dir() and not any(resolved.iterdir()))):
        logger.info("Cloning %s (%s) into %s", repo_url, branch, resolved)
        command = ["git", "clone", "--depth", "1", "--branch", branch, repo_url, str(resolved)]
        completed = subprocess.run(command, check=False)
        if completed.returncode != 0:
            raise RuntimeError(f"git clone exited with status {completed.returncode}")

    if not resolved.exists():
        raise FileNotFoundError(f"Workspace '{resolved}' does not exist")
    if not resolved.is_dir():
        raise NotADirectoryError(f"Workspace '{resolved}' is not a directory")
    return resolved
