import logging
from typing import Protocol

from botocore.client import BaseClient
from botocore.exceptions import ClientError

from cfroute.exceptions import BackendNotFoundError

logger = logging.getLogger(__name__)

API_RESOURCE_TYPES = ("AWS::ApiGateway::RestApi", "AWS::ApiGatewayV2::Api")


class AddressResolver(Protocol):
    """Maps a deployment identifier to the backend's domain name."""

    def resolve(self, stack_name: str) -> str: ...


class StackAddressResolver:
    """Resolve the API Gateway domain of a CloudFormation stack."""

    def __init__(self, cloudformation: BaseClient, region: str | None = None) -> None:
        self._cloudformation = cloudformation
        self._region = region or cloudformation.meta.region_name

    def resolve(self, stack_name: str) -> str:
        try:
            response = self._cloudformation.describe_stack_resources(StackName=stack_name)
        except ClientError as e:
            # CloudFormation reports a missing stack as a generic ValidationError
            if e.response["Error"]["Code"] == "ValidationError":
                raise BackendNotFoundError(stack_name, e.response["Error"]["Message"]) from e
            raise

        api = next(
            (
                r
                for r in response.get("StackResources", [])
                if r["ResourceType"] in API_RESOURCE_TYPES and r.get("PhysicalResourceId")
            ),
            None,
        )
        if api is None:
            raise BackendNotFoundError(stack_name, "no API Gateway resource in stack")

        domain_name = f"{api['PhysicalResourceId']}.execute-api.{self._region}.amazonaws.com"
        logger.debug("Resolved backend for stack '%s': %s", stack_name, domain_name)
        return domain_name
