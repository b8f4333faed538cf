import os
from unittest.mock import MagicMock

import pytest

# 2020-09-13, older than any remote timestamp used in the tests.
OLD_MTIME = 1_600_000_000


@pytest.fixture
def dist(tmp_path):
    """A workspace with a built bundle under wasm/dist."""
    output = tmp_path / "wasm" / "dist"
    (output / "pkg").mkdir(parents=True)
    (output / "index.html").write_text("<html></html>")
    (output / "pkg" / "app.wasm").write_bytes(b"\0asm\x01\0\0\0")
    for path in output.rglob("*"):
        if path.is_file():
            os.utime(path, (OLD_MTIME, OLD_MTIME))
    (tmp_path / "wasm" / "package.json").write_text('{"scripts": {"build": "webpack"}}')
    return output


def make_s3_client(contents=()):
    client = MagicMock()
    paginator = MagicMock()
    paginator.paginate.return_value = [{"Contents": list(contents)}]
    client.get_paginator.return_value = paginator
    client.delete_objects.return_value = {}
    return client


def make_session(s3_client=None, cloudfront_client=None):
    s3_client = s3_client or make_s3_client()
    cloudfront_client = cloudfront_client or MagicMock()
    cloudfront_client.create_invalidation.return_value = {"Invalidation": {"Id": "I2J3K4"}}
    clients = {"s3": s3_client, "cloudfront": cloudfront_client}
    session = MagicMock()
    session.client.side_effect = lambda service, **kwargs: clients[service]
    return session
