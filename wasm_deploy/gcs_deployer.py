"""Mirror a local build directory into a Google Cloud Storage bucket.

This is the ``gs://`` counterpart of :mod:`wasm_deploy.s3_deployer`. It
respects the ``GOOGLE_APPLICATION_CREDENTIALS`` and ``GCP_PROJECT_ID``
environment variables so that the deployment can run inside CI/CD or local
terminals without additional setup beyond a service-account key file.
"""
from __future__ import annotations

import logging
import os
from typing import Dict, Optional

from google.auth.exceptions import DefaultCredentialsError
from google.cloud import storage

from .sync import (
    RemoteObject,
    SyncResult,
    guess_content_type,
    iter_local_files,
    plan,
    resolve_source,
)

logger = logging.getLogger(__name__)


def get_storage_client(credentials_path: Optional[str], project_id: Optional[str]) -> storage.Client:
    credentials_path = credentials_path or os.getenv("GOOGLE_APPLICATION_CREDENTIALS")
    project_id = project_id or os.getenv("GCP_PROJECT_ID")
    try:
        if credentials_path:
            return storage.Client.from_service_account_json(credentials_path, project=project_id)
        return storage.Client(project=project_id)
    except DefaultCredentialsError as exc:
        raise RuntimeError(
            "No Google Cloud credentials found. Provide GOOGLE_APPLICATION_CREDENTIALS "
            "or configure application-default credentials."
        ) from exc


def _list_remote(bucket, prefix: str) -> Dict[str, RemoteObject]:
    remote = {}
    for blob in bucket.list_blobs(prefix=prefix.strip("/") + "/" if prefix else None):
        remote[blob.name] = RemoteObject(key=blob.name, size=blob.size, modified=blob.updated)
    return remote


def sync_to_gcs(
    source_dir,
    bucket_name: str,
    prefix: str = "",
    *,
    client: storage.Client,
    delete: bool = False,
    dry_run: bool = False,
) -> SyncResult:
    """Upload new and changed files under ``source_dir`` to ``gs://bucket_name/prefix``."""
    if not bucket_name:
        raise ValueError("A target GCS bucket must be provided")

    source = resolve_source(source_dir)
    bucket = client.bucket(bucket_name)
    local_files = list(iter_local_files(source, prefix))
    to_upload, unchanged, stale = plan(local_files, _list_remote(bucket, prefix), delete)

    result = SyncResult(skipped=[local.key for local in unchanged])
    for local in to_upload:
        if dry_run:
            logger.info("(dry run) upload: %s to gs://%s/%s", local.path, bucket_name, local.key)
        else:
            blob = bucket.blob(local.key)
            blob.upload_from_filename(str(local.path), content_type=guess_content_type(local.path))
        result.uploaded.append(local.key)

    for key in stale:
        if dry_run:
            logger.info("(dry run) delete: gs://%s/%s", bucket_name, key)
        else:
            bucket.blob(key).delete()
        result.deleted.append(key)

    logger.info("Synced %s to gs://%s/%s: %s", source, bucket_name, prefix, result.summary())
    return result
