"""CloudFront cache invalidation after a new bundle has been uploaded."""
from __future__ import annotations

import datetime as _dt
import logging
from typing import Optional, Sequence

logger = logging.getLogger(__name__)


def _caller_reference() -> str:
    return "wasm-deploy-" + _dt.datetime.now(_dt.timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")


def invalidate_cache(
    distribution_id: str,
    paths: Sequence[str] = ("/*",),
    *,
    client,
    caller_reference: Optional[str] = None,
    wait: bool = False,
    dry_run: bool = False,
) -> Optional[str]:
    """Mark ``paths`` stale on a CloudFront distribution.

    Returns the invalidation id, or ``None`` on a dry run.
    """
    if not distribution_id:
        raise ValueError("A CloudFront distribution ID must be provided")
    paths = list(paths)
    if not paths:
        raise ValueError("At least one invalidation path is required")

    if dry_run:
        logger.info("(dry run) invalidate %s on distribution %s", ", ".join(paths), distribution_id)
        return None

    response = client.create_invalidation(
        DistributionId=distribution_id,
        InvalidationBatch={
            "Paths": {"Quantity": len(paths), "Items": paths},
            "CallerReference": caller_reference or _caller_reference(),
        },
    )
    invalidation_id = response["Invalidation"]["Id"]
    logger.info("Created invalidation %s on distribution %s", invalidation_id, distribution_id)

    if wait:
        logger.info("Waiting for invalidation %s to complete", invalidation_id)
        client.get_waiter("invalidation_completed").wait(
            DistributionId=distribution_id, Id=invalidation_id
        )
    return invalidation_id
