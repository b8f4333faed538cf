"""Mirror a local build directory into an S3 bucket, like ``aws s3 sync``."""
from __future__ import annotations

import logging
from typing import Dict

from .sync import (
    RemoteObject,
    SyncResult,
    guess_content_type,
    iter_local_files,
    plan,
    resolve_source,
)

logger = logging.getLogger(__name__)

# DeleteObjects accepts at most this many keys per request.
DELETE_BATCH_SIZE = 1000


def _list_remote(client, bucket: str, prefix: str) -> Dict[str, RemoteObject]:
    paginator = client.get_paginator("list_objects_v2")
    kwargs = {"Bucket": bucket}
    if prefix:
        kwargs["Prefix"] = prefix.strip("/") + "/"
    remote = {}
    for page in paginator.paginate(**kwargs):
        for item in page.get("Contents", []):
            remote[item["Key"]] = RemoteObject(
                key=item["Key"], size=item["Size"], modified=item.get("LastModified")
            )
    return remote


def _delete_keys(client, bucket: str, keys) -> None:
    for start in range(0, len(keys), DELETE_BATCH_SIZE):
        batch = keys[start:start + DELETE_BATCH_SIZE]
        response = client.delete_objects(
            Bucket=bucket,
            Delete={"Objects": [{"Key": key} for key in batch], "Quiet": True},
        )
        errors = response.get("Errors") or []
        if errors:
            first = errors[0]
            raise RuntimeError(
                f"Failed to delete {len(errors)} object(s) from s3://{bucket}, "
                f"first: {first.get('Key')} ({first.get('Code')})"
            )


def sync_to_s3(
    source_dir,
    bucket: str,
    prefix: str = "",
    *,
    client,
    delete: bool = False,
    dry_run: bool = False,
) -> SyncResult:
    """Upload new and changed files under ``source_dir`` to ``s3://bucket/prefix``.

    ``client`` is a boto3 S3 client. With ``delete`` remote objects under the
    prefix that have no local counterpart are removed.
    """
    if not bucket:
        raise ValueError("A target S3 bucket must be provided")
    source = resolve_source(source_dir)
    local_files = list(iter_local_files(source, prefix))
    remote = _list_remote(client, bucket, prefix)
    to_upload, unchanged, stale = plan(local_files, remote, delete)

    result = SyncResult(skipped=[local.key for local in unchanged])
    for local in to_upload:
        if dry_run:
            logger.info("(dry run) upload: %s to s3://%s/%s", local.path, bucket, local.key)
        else:
            logger.debug("upload: %s to s3://%s/%s", local.path, bucket, local.key)
            client.upload_file(
                str(local.path),
                bucket,
                local.key,
                ExtraArgs={"ContentType": guess_content_type(local.path)},
            )
        result.uploaded.append(local.key)

    if stale:
        if dry_run:
            for key in stale:
                logger.info("(dry run) delete: s3://%s/%s", bucket, key)
        else:
            _delete_keys(client, bucket, stale)
        result.deleted.extend(stale)

    logger.info("Synced %s to s3://%s/%s: %s", source, bucket, prefix, result.summary())
    return result
