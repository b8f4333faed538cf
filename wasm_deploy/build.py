"""Node.js toolchain checks and the npm install/build of the bundle."""
from __future__ import annotations

import json
import logging
import pathlib
import re
import subprocess
from typing import Any, Dict, Sequence, Union

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"^v?(\d+)\.\d+\.\d+")


class BuildError(RuntimeError):
    """Raised when the toolchain is unusable or a build command fails."""


def node_major_version(node: str = "node") -> int:
    try:
        completed = subprocess.run([node, "--version"], capture_output=True, text=True, check=False)
    except OSError as exc:
        raise BuildError(f"Node.js executable '{node}' not found") from exc
    if completed.returncode != 0:
        raise BuildError(f"'{node} --version' exited with status {completed.returncode}")
    match = _VERSION_RE.match(completed.stdout.strip())
    if not match:
        raise BuildError(f"Unrecognised Node.js version string: {completed.stdout.strip()!r}")
    return int(match.group(1))


def setup_node(required_major: int, node: str = "node") -> int:
    """Check that the installed Node.js matches the pinned major version."""
    found = node_major_version(node)
    if found != required_major:
        raise BuildError(f"Node.js {required_major} is required, found Node.js {found}")
    logger.info("Using Node.js %d", found)
    return found


def read_manifest(build_path: Union[str, pathlib.Path]) -> Dict[str, Any]:
    manifest_path = pathlib.Path(build_path) / "package.json"
    try:
        manifest = json.loads(manifest_path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise BuildError(f"No package.json found in '{build_path}'") from exc
    except (OSError, ValueError) as exc:
        raise BuildError(f"Could not read '{manifest_path}': {exc}") from exc
    scripts = manifest.get("scripts") if isinstance(manifest, dict) else None
    if not isinstance(scripts, dict) or "build" not in scripts:
        raise BuildError(f"'{manifest_path}' does not define a 'build' script")
    return manifest


def _run(command: Sequence[str], cwd: pathlib.Path) -> None:
    logger.info("Running '%s' in %s", " ".join(command), cwd)
    try:
        completed = subprocess.run(list(command), cwd=str(cwd), check=False)
    except OSError as exc:
        raise BuildError(f"Could not start '{command[0]}': {exc}") from exc
    if completed.returncode != 0:
        raise BuildError(f"'{' '.join(command)}' exited with status {completed.returncode}")


def build_bundle(
    build_path: Union[str, pathlib.Path],
    output_dir: str = "dist",
    npm: str = "npm",
) -> pathlib.Path:
    """Run ``npm ci`` and ``npm run build`` and return the output directory."""
    build_path = pathlib.Path(build_path)
    if not build_path.is_dir():
        raise BuildError(f"Build directory '{build_path}' does not exist")
    read_manifest(build_path)

    _run([npm, "ci"], build_path)
    _run([npm, "run", "build"], build_path)

    output_path = build_path / output_dir
    if not output_path.is_dir():
        raise BuildError(f"Build finished but '{output_path}' was not produced")
    return output_path
