import logging
from typing import Protocol

from botocore.client import BaseClient
from botocore.exceptions import ClientError

from cfroute.dtos import CommitResult, DistributionConfig, ReconcileResult, RouteEvent
from cfroute.exceptions import DistributionNotFoundError, VersionConflictError

logger = logging.getLogger(__name__)

CONFLICT_ERROR_CODES = ("PreconditionFailed", "InvalidIfMatchVersion")


class ConfigStore(Protocol):
    """Versioned distribution config storage. Dumb I/O, no diffing."""

    def get_config(self, distribution_id: str) -> DistributionConfig: ...

    def commit(self, distribution_id: str, config: DistributionConfig) -> dict:
        """Write config if its ETag is still current. Returns the new distribution."""
        ...


class CloudFrontConfigStore:
    """CloudFront implementation of ConfigStore."""

    def __init__(self, cloudfront: BaseClient) -> None:
        self._cloudfront = cloudfront

    def get_config(self, distribution_id: str) -> DistributionConfig:
        try:
            response = self._cloudfront.get_distribution_config(Id=distribution_id)
        except ClientError as e:
            if e.response["Error"]["Code"] == "NoSuchDistribution":
                raise DistributionNotFoundError(distribution_id) from e
            raise
        return DistributionConfig.from_api(response)

    def commit(self, distribution_id: str, config: DistributionConfig) -> dict:
        try:
            response = self._cloudfront.update_distribution(
                Id=distribution_id, DistributionConfig=config.to_api(), IfMatch=config.etag
            )
        except ClientError as e:
            code = e.response["Error"]["Code"]
            if code in CONFLICT_ERROR_CODES:
                raise VersionConflictError(distribution_id, config.etag) from e
            if code == "NoSuchDistribution":
                raise DistributionNotFoundError(distribution_id) from e
            raise
        return response["Distribution"]


def commit_if_changed(
    store: ConfigStore, distribution_id: str, result: ReconcileResult
) -> CommitResult:
    """Submit result.config when something changed. No call otherwise."""
    if not result.changed:
        logger.info("No updates pending for distribution %s", distribution_id)
        return CommitResult(
            committed=False,
            events=(RouteEvent("commit", distribution_id, "No updates pending"),),
        )

    distribution = store.commit(distribution_id, result.config)
    logger.info(
        "Updating distribution %s (status: %s)", distribution["Id"], distribution.get("Status")
    )
    return CommitResult(
        committed=True,
        distribution=distribution,
        events=(
            RouteEvent("commit", distribution_id, f"Updating distribution {distribution['Id']}"),
        ),
    )
