"""AWS credential handling for the S3 upload and the CloudFront invalidation.

The key pair comes from the ``AWS_ACCESS_KEY_ID`` and ``AWS_SECRET_ACCESS_KEY``
secrets. Local runs can opt into the default boto3 credential chain instead
(profiles, SSO, instance roles).
"""
from __future__ import annotations

import logging
from typing import Optional

import boto3

logger = logging.getLogger(__name__)


class CredentialsError(RuntimeError):
    """Raised when AWS credentials are missing or incomplete."""


def configure_aws_session(
    access_key_id: Optional[str],
    secret_access_key: Optional[str],
    region: str,
    *,
    allow_default_chain: bool = False,
) -> boto3.session.Session:
    """Return a boto3 session for the given key pair and region.

    Without a key pair the default credential chain is used only when
    ``allow_default_chain`` is set, and it has to resolve to something.
    """
    if access_key_id and secret_access_key:
        return boto3.session.Session(
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            region_name=region,
        )
    if access_key_id or secret_access_key:
        missing = "AWS_SECRET_ACCESS_KEY" if access_key_id else "AWS_ACCESS_KEY_ID"
        raise CredentialsError(f"{missing} is not set")
    if not allow_default_chain:
        raise CredentialsError("AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY are not set")

    session = boto3.session.Session(region_name=region)
    if session.get_credentials() is None:
        raise CredentialsError("No AWS credentials found in the default credential chain")
    logger.info("Using AWS credentials from the default chain")
    return session
