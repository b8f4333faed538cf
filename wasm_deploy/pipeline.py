"""Ordered, fail-fast execution of the deployment steps.

The deploy pipeline is:

1. ``checkout``: make sure the source tree is present
2. ``setup-node``: check the pinned Node.js major version
3. ``build``: ``npm ci`` and ``npm run build`` inside the build directory
4. ``configure-credentials``: open cloud sessions from the secrets
5. ``upload``: sync the build output to the bucket
6. ``invalidate``: invalidate ``/*`` on the CloudFront distribution

The first step that raises stops the run. Later steps are reported as skipped.
"""
from __future__ import annotations

import dataclasses
import logging
import time
from typing import Any, Callable, List, Optional

from . import build, checkout, cloudfront, credentials, gcs_deployer, s3_deployer
from .config import DeployConfig

logger = logging.getLogger(__name__)

SUCCEEDED = "succeeded"
FAILED = "failed"
SKIPPED = "skipped"


class StepFailed(RuntimeError):
    def __init__(self, step: str, cause: BaseException, result: "PipelineResult"):
        super().__init__(f"Step '{step}' failed: {cause}")
        self.step = step
        self.result = result


@dataclasses.dataclass
class Step:
    name: str
    action: Callable[[], Any]


@dataclasses.dataclass
class StepResult:
    name: str
    status: str
    duration: float = 0.0
    detail: Optional[str] = None


@dataclasses.dataclass
class PipelineResult:
    steps: List[StepResult] = dataclasses.field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(step.status == SUCCEEDED for step in self.steps)

    def status_of(self, name: str) -> Optional[str]:
        for step in self.steps:
            if step.name == name:
                return step.status
        return None


class Pipeline:
    def __init__(self, steps: List[Step]):
        names = [step.name for step in steps]
        if len(set(names)) != len(names):
            raise ValueError("Step names must be unique")
        self.steps = list(steps)

    def run(self) -> PipelineResult:
        """Run every step in order, raising :class:`StepFailed` on the first error."""
        result = PipelineResult()
        for index, step in enumerate(self.steps, start=1):
            logger.info("Step %d/%d: %s", index, len(self.steps), step.name)
            started = time.monotonic()
            try:
                detail = step.action()
            except Exception as exc:
                elapsed = time.monotonic() - started
                logger.error("Step '%s' failed after %.1fs: %s", step.name, elapsed, exc)
                result.steps.append(StepResult(step.name, FAILED, elapsed, str(exc)))
                for remaining in self.steps[index:]:
                    result.steps.append(StepResult(remaining.name, SKIPPED))
                raise StepFailed(step.name, exc, result) from exc
            elapsed = time.monotonic() - started
            detail = None if detail is None else str(detail)
            logger.info("Step '%s' finished in %.1fs", step.name, elapsed)
            result.steps.append(StepResult(step.name, SUCCEEDED, elapsed, detail))
        return result


@dataclasses.dataclass
class _DeployState:
    workspace: Any = None
    session: Any = None
    gcs_client: Any = None
    output_path: Any = None


def build_deploy_pipeline(
    config: DeployConfig,
    *,
    session=None,
    gcs_client=None,
    skip_build: bool = False,
    skip_invalidation: bool = False,
    wait: bool = False,
) -> Pipeline:
    """Wire the deployment steps for ``config``.

    ``session`` (a boto3 session) and ``gcs_client`` replace the ones the
    ``configure-credentials`` step would otherwise create.
    """
    state = _DeployState(workspace=config.workspace, session=session, gcs_client=gcs_client)
    uses_gcs = config.storage_scheme == "gs"
    needs_aws = not uses_gcs or not skip_invalidation

    def do_checkout():
        state.workspace = checkout.checkout(config.workspace, config.repo_url, config.branch)
        return state.workspace

    def do_setup_node():
        if skip_build:
            return "build skipped"
        return f"node {build.setup_node(config.node_version)}"

    def do_build():
        build_path = state.workspace / config.build_dir
        if skip_build:
            output_path = build_path / config.output_dir
            if not output_path.is_dir():
                raise FileNotFoundError(f"Build output '{output_path}' does not exist")
            state.output_path = output_path
            return "build skipped"
        state.output_path = build.build_bundle(build_path, config.output_dir)
        return state.output_path

    def do_configure_credentials():
        configured = []
        if needs_aws and state.session is None:
            state.session = credentials.configure_aws_session(
                config.aws_access_key_id,
                config.aws_secret_access_key,
                config.region,
                allow_default_chain=config.use_default_credentials,
            )
            configured.append(f"aws ({config.region})")
        if uses_gcs and state.gcs_client is None:
            state.gcs_client = gcs_deployer.get_storage_client(config.gcp_credentials, config.gcp_project)
            configured.append("gcs")
        return ", ".join(configured) or "preconfigured"

    def do_upload():
        if uses_gcs:
            result = gcs_deployer.sync_to_gcs(
                state.output_path,
                config.bucket,
                config.prefix,
                client=state.gcs_client,
                delete=config.delete,
                dry_run=config.dry_run,
            )
        else:
            result = s3_deployer.sync_to_s3(
                state.output_path,
                config.bucket,
                config.prefix,
                client=state.session.client("s3", region_name=config.region),
                delete=config.delete,
                dry_run=config.dry_run,
            )
        return result.summary()

    def do_invalidate():
        if skip_invalidation:
            return "invalidation skipped"
        return cloudfront.invalidate_cache(
            config.distribution_id,
            config.invalidation_paths,
            client=state.session.client("cloudfront"),
            wait=wait,
            dry_run=config.dry_run,
        )

    return Pipeline(
        [
            Step("checkout", do_checkout),
            Step("setup-node", do_setup_node),
            Step("build", do_build),
            Step("configure-credentials", do_configure_credentials),
            Step("upload", do_upload),
            Step("invalidate", do_invalidate),
        ]
    )
