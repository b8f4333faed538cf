"""Pieces shared by the object-storage sync backends."""
from __future__ import annotations

import dataclasses
import datetime as _dt
import mimetypes
import pathlib
from typing import Iterator, List, Optional, Tuple

mimetypes.add_type("application/wasm", ".wasm")
mimetypes.add_type("text/javascript", ".mjs")

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclasses.dataclass(frozen=True)
class LocalFile:
    path: pathlib.Path
    key: str
    size: int
    modified: _dt.datetime


@dataclasses.dataclass(frozen=True)
class RemoteObject:
    key: str
    size: int
    modified: Optional[_dt.datetime]


@dataclasses.dataclass
class SyncResult:
    uploaded: List[str] = dataclasses.field(default_factory=list)
    skipped: List[str] = dataclasses.field(default_factory=list)
    deleted: List[str] = dataclasses.field(default_factory=list)

    def summary(self) -> str:
        return f"{len(self.uploaded)} uploaded, {len(self.skipped)} unchanged, {len(self.deleted)} deleted"


def join_key(prefix: str, relative: str) -> str:
    prefix = prefix.strip("/")
    return f"{prefix}/{relative}" if prefix else relative


def resolve_source(source_dir) -> pathlib.Path:
    resolved = pathlib.Path(source_dir).expanduser().resolve()
    if not resolved.exists():
        raise FileNotFoundError(f"Source path '{resolved}' does not exist")
    if not resolved.is_dir():
        raise NotADirectoryError(f"Source path '{resolved}' is not a directory")
    return resolved


def iter_local_files(source: pathlib.Path, prefix: str = "") -> Iterator[LocalFile]:
    """Yield every regular file under ``source`` in key order."""
    for path in sorted(p for p in source.rglob("*") if p.is_file()):
        stat = path.stat()
        yield LocalFile(
            path=path,
            key=join_key(prefix, path.relative_to(source).as_posix()),
            size=stat.st_size,
            modified=_dt.datetime.fromtimestamp(stat.st_mtime, tz=_dt.timezone.utc),
        )


def needs_upload(local: LocalFile, remote: Optional[RemoteObject]) -> bool:
    if remote is None or remote.size != local.size:
        return True
    if remote.modified is None:
        return True
    return local.modified > remote.modified


def guess_content_type(path: pathlib.Path) -> str:
    content_type, _ = mimetypes.guess_type(path.name)
    return content_type or DEFAULT_CONTENT_TYPE


def plan(
    local_files: List[LocalFile], remote: dict, delete: bool
) -> Tuple[List[LocalFile], List[LocalFile], List[str]]:
    """Split local files into (to upload, unchanged) and list remote keys to delete."""
    to_upload, unchanged = [], []
    for local in local_files:
        (to_upload if needs_upload(local, remote.get(local.key)) else unchanged).append(local)
    stale: List[str] = []
    if delete:
        local_keys = {local.key for local in local_files}
        stale = sorted(key for key in remote if key not in local_keys)
    return to_upload, unchanged, stale
