import logging
from datetime import UTC, datetime

from botocore.client import BaseClient
from botocore.exceptions import ClientError

from cfroute.dtos import InvalidationOutcome, UpdateKind

logger = logging.getLogger(__name__)


def caller_reference(now: datetime | None = None) -> str:
    """Idempotency token for CreateInvalidation, derived from the current time."""
    now = now or datetime.now(tz=UTC)
    return f"cfroute-{now.strftime('%Y%m%dT%H%M%S%f')}"


def should_invalidate(update_kind: UpdateKind | None, cache_enabled: bool) -> bool:
    """Only updates of cached routes can leave stale content behind."""
    return update_kind == "update" and cache_enabled


def maybe_invalidate(
    cloudfront: BaseClient,
    distribution_id: str,
    path_pattern: str,
    update_kind: UpdateKind | None,
    cache_enabled: bool,
    *,
    now: datetime | None = None,
) -> InvalidationOutcome:
    """Purge cached content under path_pattern after a route update.

    Skipped for first-time creates (nothing cached yet) and for routes that don't
    cache (min TTL of zero). Best effort: API errors are logged, and the outcome is
    marked as attempted without an invalidation id.
    """
    if not should_invalidate(update_kind, cache_enabled):
        logger.debug("Skipping invalidation for %s", path_pattern)
        return InvalidationOutcome(attempted=False)

    try:
        response = cloudfront.create_invalidation(
            DistributionId=distribution_id,
            InvalidationBatch={
                "Paths": {"Quantity": 1, "Items": [path_pattern]},
                "CallerReference": caller_reference(now),
            },
        )
    except ClientError as e:
        logger.warning(
            "Invalidation of %s on distribution %s failed: %s",
            path_pattern,
            distribution_id,
            e.response["Error"].get("Message", e),
        )
        return InvalidationOutcome(attempted=True)

    invalidation_id = response["Invalidation"]["Id"]
    logger.info("Created invalidation %s for %s", invalidation_id, path_pattern)
    return InvalidationOutcome(attempted=True, invalidation_id=invalidation_id)
