"""Command line entry point: ``python -m wasm_deploy`` or ``wasm-deploy``."""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

from .config import DeployConfig
from .log import setup_logging
from .pipeline import StepFailed, build_deploy_pipeline
from .trigger import TriggerEvent, should_deploy

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Build the WASM bundle, sync it to object storage and invalidate the CDN cache."
    )
    parser.add_argument("--workspace", help="Repository checkout to deploy. Defaults to the current directory.")
    parser.add_argument("--repo-url", dest="repo_url", help="Clone this repository into the workspace if it is empty.")
    parser.add_argument("--build-dir", dest="build_dir", help="Subdirectory holding package.json (default: wasm).")
    parser.add_argument("--output-dir", dest="output_dir", help="Build output directory inside the build dir (default: dist).")
    parser.add_argument(
        "--destination",
        help="Target bucket as s3://bucket[/prefix] or gs://bucket[/prefix]. Defaults to DEPLOY_DESTINATION.",
    )
    parser.add_argument("--region", help="AWS region. Defaults to AWS_REGION or us-west-1.")
    parser.add_argument(
        "--distribution-id",
        dest="distribution_id",
        help="CloudFront distribution to invalidate. Defaults to CLOUDFRONT_DISTRIBUTION_ID.",
    )
    parser.add_argument("--node-version", dest="node_version", type=int, help="Required Node.js major version.")
    parser.add_argument("--skip-build", action="store_true", help="Upload an existing build output.")
    parser.add_argument("--skip-invalidation", action="store_true", help="Do not invalidate the CDN cache.")
    parser.add_argument("--delete", action="store_true", help="Remove remote objects missing locally.")
    parser.add_argument("--dry-run", action="store_true", help="Show what would change without touching the bucket.")
    parser.add_argument("--wait", action="store_true", help="Wait for the invalidation to complete.")
    parser.add_argument("--force", action="store_true", help="Deploy even when not triggered by a push to main.")
    parser.add_argument(
        "--use-default-credentials",
        action="store_true",
        help="Fall back to the default AWS credential chain when no access keys are set.",
    )
    parser.add_argument("--log-file", dest="log_file", help="Also write logs to this file.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    try:
        setup_logging(logging.DEBUG if args.verbose else logging.INFO, args.log_file)
        config = DeployConfig.from_env(
            workspace=args.workspace,
            repo_url=args.repo_url,
            build_dir=args.build_dir,
            output_dir=args.output_dir,
            destination=args.destination,
            region=args.region,
            distribution_id=args.distribution_id,
            node_version=args.node_version,
            delete=args.delete or None,
            dry_run=args.dry_run or None,
            use_default_credentials=args.use_default_credentials or None,
        )
    except (OSError, ValueError) as exc:
        print(f"Deployment failed: {exc}", file=sys.stderr)
        return 1

    event = TriggerEvent.from_env(workspace=config.workspace)
    if not args.force and not should_deploy(event, config.branch):
        logger.info(
            "Skipping deployment: event '%s' on '%s' is not a push to %s",
            event.name, event.ref or "unknown ref", config.branch,
        )
        return 0

    pipeline = build_deploy_pipeline(
        config,
        skip_build=args.skip_build,
        skip_invalidation=args.skip_invalidation,
        wait=args.wait,
    )
    try:
        pipeline.run()
    except StepFailed as exc:
        print(f"Deployment failed: {exc}", file=sys.stderr)
        return 1

    logger.info("Deployed %s to %s", config.output_path, config.destination)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
