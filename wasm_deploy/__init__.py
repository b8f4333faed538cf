"""Deployment helpers for building the WASM bundle and publishing it behind a CDN."""

from .cloudfront import invalidate_cache
from .config import DeployConfig, parse_destination
from .pipeline import Pipeline, PipelineResult, Step, StepFailed, build_deploy_pipeline
from .s3_deployer import sync_to_s3
from .gcs_deployer import sync_to_gcs
from .sync import SyncResult

__all__ = [
    "DeployConfig",
    "Pipeline",
    "PipelineResult",
    "Step",
    "StepFailed",
    "SyncResult",
    "build_deploy_pipeline",
    "invalidate_cache",
    "parse_destination",
    "sync_to_gcs",
    "sync_to_s3",
]
