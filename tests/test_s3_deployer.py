"""Tests for the S3 directory sync."""

import datetime as dt

import pytest

from conftest import make_s3_client
from wasm_deploy import s3_deployer
from wasm_deploy.s3_deployer import sync_to_s3

RECENT = dt.datetime(2024, 1, 1, tzinfo=dt.timezone.utc)
ANCIENT = dt.datetime(2001, 1, 1, tzinfo=dt.timezone.utc)


def remote(key, size, modified=RECENT):
    return {"Key": key, "Size": size, "LastModified": modified}


def uploaded_keys(client):
    return sorted(call.args[2] for call in client.upload_file.call_args_list)


class TestSyncToS3:
    def test_uploads_everything_to_empty_bucket(self, dist):
        client = make_s3_client()
        result = sync_to_s3(dist, "zakfarmer-php-rs", client=client)

        assert result.uploaded == ["index.html", "pkg/app.wasm"]
        assert uploaded_keys(client) == ["index.html", "pkg/app.wasm"]
        client.get_paginator.assert_called_once_with("list_objects_v2")
        client.get_paginator.return_value.paginate.assert_called_once_with(Bucket="zakfarmer-php-rs")

    def test_sets_content_types(self, dist):
        client = make_s3_client()
        sync_to_s3(dist, "bucket", client=client)
        types = {
            call.args[2]: call.kwargs["ExtraArgs"]["ContentType"]
            for call in client.upload_file.call_args_list
        }
        assert types == {"index.html": "text/html", "pkg/app.wasm": "application/wasm"}

    def test_skips_unchanged_files(self, dist):
        client = make_s3_client([remote("index.html", 13), remote("pkg/app.wasm", 8)])
        result = sync_to_s3(dist, "bucket", client=client)

        assert result.uploaded == []
        assert result.skipped == ["index.html", "pkg/app.wasm"]
        client.upload_file.assert_not_called()

    def test_uploads_when_size_differs(self, dist):
        client = make_s3_client([remote("index.html", 99), remote("pkg/app.wasm", 8)])
        result = sync_to_s3(dist, "bucket", client=client)
        assert result.uploaded == ["index.html"]

    def test_uploads_when_local_is_newer(self, dist):
        client = make_s3_client([remote("index.html", 13, ANCIENT), remote("pkg/app.wasm", 8)])
        assert sync_to_s3(dist, "bucket", client=client).uploaded == ["index.html"]

    def test_prefix(self, dist):
        client = make_s3_client()
        result = sync_to_s3(dist, "bucket", "site/", client=client)

        assert result.uploaded == ["site/index.html", "site/pkg/app.wasm"]
        client.get_paginator.return_value.paginate.assert_called_once_with(Bucket="bucket", Prefix="site/")

    def test_stale_objects_kept_without_delete(self, dist):
        client = make_s3_client([remote("old.js", 3)])
        result = sync_to_s3(dist, "bucket", client=client)
        assert result.deleted == []
        client.delete_objects.assert_not_called()

    def test_delete_removes_stale_objects(self, dist):
        client = make_s3_client([remote("old.js", 3), remote("index.html", 13)])
        result = sync_to_s3(dist, "bucket", client=client, delete=True)

        assert result.deleted == ["old.js"]
        client.delete_objects.assert_called_once_with(
            Bucket="bucket", Delete={"Objects": [{"Key": "old.js"}], "Quiet": True}
        )

    def test_delete_batches(self, dist, monkeypatch):
        monkeypatch.setattr(s3_deployer, "DELETE_BATCH_SIZE", 2)
        client = make_s3_client([remote(f"old-{i}.js", 1) for i in range(5)])
        sync_to_s3(dist, "bucket", client=client, delete=True)
        assert client.delete_objects.call_count == 3

    def test_delete_errors_raise(self, dist):
        client = make_s3_client([remote("old.js", 3)])
        client.delete_objects.return_value = {"Errors": [{"Key": "old.js", "Code": "AccessDenied"}]}
        with pytest.raises(RuntimeError, match="AccessDenied"):
            sync_to_s3(dist, "bucket", client=client, delete=True)

    def test_dry_run_changes_nothing(self, dist):
        client = make_s3_client([remote("old.js", 3)])
        result = sync_to_s3(dist, "bucket", client=client, delete=True, dry_run=True)

        assert result.uploaded == ["index.html", "pkg/app.wasm"]
        assert result.deleted == ["old.js"]
        client.upload_file.assert_not_called()
        client.delete_objects.assert_not_called()

    def test_missing_source(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            sync_to_s3(tmp_path / "dist", "bucket", client=make_s3_client())

    def test_missing_bucket(self, dist):
        with pytest.raises(ValueError, match="bucket"):
            sync_to_s3(dist, "", client=make_s3_client())
