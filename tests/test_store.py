from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from cfroute.dtos import DistributionConfig, ReconcileResult
from cfroute.exceptions import DistributionNotFoundError, VersionConflictError
from cfroute.store import CloudFrontConfigStore, commit_if_changed
from tests.fakes import api_response, client_error, default_origin


def test_from_api_and_to_api_keep_unmanaged_fields():
    response = api_response(
        etag="E9",
        behaviors=[{"TargetOriginId": "site-bucket", "PathPattern": "/static/*"}],
    )

    config = DistributionConfig.from_api(response)

    assert config.etag == "E9"
    assert config.origins_quantity == 1
    assert config.behaviors_quantity == 1
    assert config.to_api() == response["DistributionConfig"]


def test_from_api_without_items():
    response = api_response()
    response["DistributionConfig"]["CacheBehaviors"] = {"Quantity": 0}

    config = DistributionConfig.from_api(response)

    assert config.behaviors == ()
    assert config.to_api()["CacheBehaviors"] == {"Quantity": 0, "Items": []}


def test_from_api_does_not_alias_response():
    response = api_response()
    config = DistributionConfig.from_api(response)

    response["DistributionConfig"]["Origins"]["Items"][0]["Id"] = "changed"

    assert config.origins[0]["Id"] == "site-bucket"


def test_to_api_quantity_follows_items():
    config = DistributionConfig(
        etag="E1", origins=(default_origin("a"), default_origin("b")), rest={}
    )

    payload = config.to_api()

    assert payload["Origins"]["Quantity"] == 2
    assert payload["CacheBehaviors"] == {"Quantity": 0, "Items": []}


def test_get_config():
    cloudfront = MagicMock()
    cloudfront.get_distribution_config.return_value = api_response(etag="E3")

    config = CloudFrontConfigStore(cloudfront).get_config("D1")

    cloudfront.get_distribution_config.assert_called_once_with(Id="D1")
    assert config.etag == "E3"


def test_get_config_missing_distribution():
    cloudfront = MagicMock()
    cloudfront.get_distribution_config.side_effect = client_error("NoSuchDistribution")

    with pytest.raises(DistributionNotFoundError, match="'D1' not found"):
        CloudFrontConfigStore(cloudfront).get_config("D1")


def test_commit_sends_if_match():
    cloudfront = MagicMock()
    cloudfront.update_distribution.return_value = {"Distribution": {"Id": "D1"}, "ETag": "E4"}
    config = DistributionConfig.from_api(api_response(etag="E3"))

    distribution = CloudFrontConfigStore(cloudfront).commit("D1", config)

    assert distribution == {"Id": "D1"}
    cloudfront.update_distribution.assert_called_once_with(
        Id="D1", DistributionConfig=config.to_api(), IfMatch="E3"
    )


@pytest.mark.parametrize("code", ["PreconditionFailed", "InvalidIfMatchVersion"])
def test_commit_stale_etag_raises_version_conflict(code):
    cloudfront = MagicMock()
    cloudfront.update_distribution.side_effect = client_error(code)
    config = DistributionConfig.from_api(api_response(etag="E3"))

    with pytest.raises(VersionConflictError) as exc_info:
        CloudFrontConfigStore(cloudfront).commit("D1", config)
    assert exc_info.value.etag == "E3"


def test_commit_other_errors_propagate():
    cloudfront = MagicMock()
    cloudfront.update_distribution.side_effect = client_error("InvalidArgument")
    config = DistributionConfig.from_api(api_response())

    with pytest.raises(ClientError):
        CloudFrontConfigStore(cloudfront).commit("D1", config)


def test_commit_if_changed_skips_unchanged():
    store = MagicMock()
    config = DistributionConfig.from_api(api_response())
    result = ReconcileResult(
        config=config, changed=False, origin_action="unchanged", behavior_action="unchanged"
    )

    commit = commit_if_changed(store, "D1", result)

    assert not commit.committed
    assert commit.events[0].detail == "No updates pending"
    store.commit.assert_not_called()


def test_commit_if_changed_commits():
    store = MagicMock()
    store.commit.return_value = {"Id": "D1", "Status": "InProgress"}
    config = DistributionConfig.from_api(api_response())
    result = ReconcileResult(
        config=config, changed=True, origin_action="created", behavior_action="created"
    )

    commit = commit_if_changed(store, "D1", result)

    assert commit.committed
    assert commit.distribution == {"Id": "D1", "Status": "InProgress"}
    store.commit.assert_called_once_with("D1", config)
