from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from cfroute.exceptions import BackendNotFoundError
from cfroute.resolver import StackAddressResolver
from tests.fakes import client_error


def _cloudformation(resources: list[dict]) -> MagicMock:
    client = MagicMock()
    client.meta.region_name = "eu-west-1"
    client.describe_stack_resources.return_value = {"StackResources": resources}
    return client


def test_resolves_rest_api_domain():
    client = _cloudformation(
        [
            {"ResourceType": "AWS::Lambda::Function", "PhysicalResourceId": "fn"},
            {"ResourceType": "AWS::ApiGateway::RestApi", "PhysicalResourceId": "abc123"},
        ]
    )

    domain = StackAddressResolver(client).resolve("svc-dev")

    assert domain == "abc123.execute-api.eu-west-1.amazonaws.com"
    client.describe_stack_resources.assert_called_once_with(StackName="svc-dev")


def test_resolves_http_api_with_explicit_region():
    client = _cloudformation(
        [{"ResourceType": "AWS::ApiGatewayV2::Api", "PhysicalResourceId": "h77"}]
    )

    assert (
        StackAddressResolver(client, "us-east-1").resolve("svc")
        == "h77.execute-api.us-east-1.amazonaws.com"
    )


def test_missing_api_resource_raises():
    client = _cloudformation([{"ResourceType": "AWS::S3::Bucket", "PhysicalResourceId": "b"}])

    with pytest.raises(BackendNotFoundError, match="no API Gateway resource"):
        StackAddressResolver(client).resolve("svc")


def test_missing_stack_raises():
    client = _cloudformation([])
    client.describe_stack_resources.side_effect = client_error(
        "ValidationError", "Stack with id svc does not exist"
    )

    with pytest.raises(BackendNotFoundError, match="Stack with id svc does not exist"):
        StackAddressResolver(client).resolve("svc")


def test_other_errors_propagate():
    client = _cloudformation([])
    client.describe_stack_resources.side_effect = client_error("Throttling")

    with pytest.raises(ClientError):
        StackAddressResolver(client).resolve("svc")
