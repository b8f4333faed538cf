"""Deployment settings resolved from the environment and CLI overrides.

Secrets (``AWS_ACCESS_KEY_ID``, ``AWS_SECRET_ACCESS_KEY`` and
``CLOUDFRONT_DISTRIBUTION_ID``) are injected by the CI runner. Locally they can
live in a ``.env`` file at the working directory.
"""
from __future__ import annotations

import dataclasses
import os
import pathlib
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

DEFAULT_BUCKET = "zakfarmer-php-rs"
DEFAULT_REGION = "us-west-1"
DEFAULT_BUILD_DIR = "wasm"
DEFAULT_OUTPUT_DIR = "dist"
DEFAULT_NODE_VERSION = 18
DEFAULT_BRANCH = "main"
DEFAULT_INVALIDATION_PATHS: Tuple[str, ...] = ("/*",)

_SCHEMES = ("s3", "gs")


def parse_destination(uri: str) -> Tuple[str, str, str]:
    """Split ``s3://bucket/prefix`` or ``gs://bucket/prefix`` into its parts.

    A bare bucket name is treated as an S3 bucket.
    """
    if not uri or not uri.strip():
        raise ValueError("A destination bucket must be provided")
    uri = uri.strip()
    if "://" in uri:
        scheme, _, rest = uri.partition("://")
        scheme = scheme.lower()
        if scheme not in _SCHEMES:
            raise ValueError(f"Unsupported destination scheme '{scheme}' (expected s3:// or gs://)")
    else:
        scheme, rest = "s3", uri
    bucket, _, prefix = rest.partition("/")
    if not bucket:
        raise ValueError(f"Destination '{uri}' does not name a bucket")
    return scheme, bucket, prefix.strip("/")


@dataclasses.dataclass
class DeployConfig:
    workspace: pathlib.Path = dataclasses.field(default_factory=pathlib.Path.cwd)
    build_dir: str = DEFAULT_BUILD_DIR
    output_dir: str = DEFAULT_OUTPUT_DIR
    node_version: int = DEFAULT_NODE_VERSION
    destination: str = f"s3://{DEFAULT_BUCKET}"
    region: str = DEFAULT_REGION
    distribution_id: Optional[str] = None
    invalidation_paths: Tuple[str, ...] = DEFAULT_INVALIDATION_PATHS
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    gcp_credentials: Optional[str] = None
    gcp_project: Optional[str] = None
    repo_url: Optional[str] = None
    branch: str = DEFAULT_BRANCH
    delete: bool = False
    dry_run: bool = False
    use_default_credentials: bool = False

    def __post_init__(self) -> None:
        self.workspace = pathlib.Path(self.workspace).expanduser()
        self.node_version = int(self.node_version)
        # Fail early on a malformed destination.
        parse_destination(self.destination)

    @property
    def build_path(self) -> pathlib.Path:
        return self.workspace / self.build_dir

    @property
    def output_path(self) -> pathlib.Path:
        return self.build_path / self.output_dir

    @property
    def storage_scheme(self) -> str:
        return parse_destination(self.destination)[0]

    @property
    def bucket(self) -> str:
        return parse_destination(self.destination)[1]

    @property
    def prefix(self) -> str:
        return parse_destination(self.destination)[2]

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "DeployConfig":
        """Build a config from environment variables, then apply non-None overrides.

        When ``environ`` is omitted, ``.env`` is loaded into ``os.environ`` first.
        """
        if environ is None:
            load_dotenv()
            environ = os.environ

        def read(name: str) -> Optional[str]:
            # CI runners export unset variables as empty strings.
            return (environ.get(name) or "").strip() or None

        destination = read("DEPLOY_DESTINATION")
        if not destination and read("DEPLOY_BUCKET"):
            destination = f"s3://{read('DEPLOY_BUCKET')}"

        values = {
            "destination": destination,
            "region": read("AWS_REGION") or read("AWS_DEFAULT_REGION"),
            "build_dir": read("DEPLOY_BUILD_DIR"),
            "node_version": read("DEPLOY_NODE_VERSION"),
            "distribution_id": read("CLOUDFRONT_DISTRIBUTION_ID"),
            "aws_access_key_id": read("AWS_ACCESS_KEY_ID"),
            "aws_secret_access_key": read("AWS_SECRET_ACCESS_KEY"),
            "gcp_credentials": read("GOOGLE_APPLICATION_CREDENTIALS"),
            "gcp_project": read("GCP_PROJECT_ID"),
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**{key: value for key, value in values.items() if value is not None})
