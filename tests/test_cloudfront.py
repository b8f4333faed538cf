from unittest.mock import MagicMock

import pytest

from wasm_deploy.cloudfront import invalidate_cache


def make_client():
    client = MagicMock()
    client.create_invalidation.return_value = {"Invalidation": {"Id": "I2J3K4", "Status": "InProgress"}}
    return client


class TestInvalidateCache:
    def test_invalidates_everything_by_default(self):
        client = make_client()
        assert invalidate_cache("E123", client=client, caller_reference="ref-1") == "I2J3K4"
        client.create_invalidation.assert_called_once_with(
            DistributionId="E123",
            InvalidationBatch={"Paths": {"Quantity": 1, "Items": ["/*"]}, "CallerReference": "ref-1"},
        )

    def test_generates_caller_reference(self):
        client = make_client()
        invalidate_cache("E123", ["/index.html", "/pkg/*"], client=client)
        batch = client.create_invalidation.call_args.kwargs["InvalidationBatch"]
        assert batch["Paths"] == {"Quantity": 2, "Items": ["/index.html", "/pkg/*"]}
        assert batch["CallerReference"].startswith("wasm-deploy-")

    def test_wait(self):
        client = make_client()
        invalidate_cache("E123", client=client, wait=True)
        client.get_waiter.assert_called_once_with("invalidation_completed")
        client.get_waiter.return_value.wait.assert_called_once_with(DistributionId="E123", Id="I2J3K4")

    def test_dry_run(self):
        client = make_client()
        assert invalidate_cache("E123", client=client, dry_run=True) is None
        client.create_invalidation.assert_not_called()

    def test_missing_distribution(self):
        with pytest.raises(ValueError, match="distribution ID"):
            invalidate_cache("", client=make_client())

    def test_no_paths(self):
        with pytest.raises(ValueError, match="invalidation path"):
            invalidate_cache("E123", [], client=make_client())
