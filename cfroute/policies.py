"""Shared CloudFront cache policies, looked up by name.

Policies are never modified in place: they are created on first use and deleted as
a whole. Several routes (and distributions) can reference the same policy.
"""

import logging

from botocore.client import BaseClient
from botocore.exceptions import ClientError

from cfroute.config import TtlBounds
from cfroute.exceptions import CachePolicyInUseError, CachePolicyNotFoundError

logger = logging.getLogger(__name__)

FORWARDED_HEADERS = ("Authorization",)


def cache_policy_config(name: str, ttl: TtlBounds) -> dict:
    """Policy definition with the fixed forwarded-parameters contract."""
    # CloudFront rejects headers in the cache key when caching is disabled entirely
    headers_config = (
        {
            "HeaderBehavior": "whitelist",
            "Headers": {"Quantity": len(FORWARDED_HEADERS), "Items": list(FORWARDED_HEADERS)},
        }
        if ttl.max_ttl > 0
        else {"HeaderBehavior": "none"}
    )
    return {
        "Name": name,
        "Comment": f"Managed by cfroute ({name})",
        "MinTTL": ttl.min_ttl,
        "MaxTTL": ttl.max_ttl,
        "DefaultTTL": ttl.default_ttl,
        "ParametersInCacheKeyAndForwardedToOrigin": {
            "EnableAcceptEncodingGzip": True,
            "EnableAcceptEncodingBrotli": True,
            "HeadersConfig": headers_config,
            "CookiesConfig": {"CookieBehavior": "none"},
            "QueryStringsConfig": {"QueryStringBehavior": "none"},
        },
    }


class CachePolicyRegistry:
    def __init__(self, cloudfront: BaseClient) -> None:
        self._cloudfront = cloudfront

    def find(self, name: str) -> str | None:
        """Return the id of the custom cache policy called name, or None."""
        kwargs = {"Type": "custom"}
        while True:
            policy_list = self._cloudfront.list_cache_policies(**kwargs)["CachePolicyList"]
            for item in policy_list.get("Items", []):
                policy = item["CachePolicy"]
                if policy["CachePolicyConfig"]["Name"] == name:
                    return policy["Id"]
            next_marker = policy_list.get("NextMarker")
            if not next_marker:
                return None
            kwargs["Marker"] = next_marker

    def get_or_create(self, name: str, ttl: TtlBounds) -> str:
        policy_id = self.find(name)
        if policy_id is not None:
            logger.debug("Using existing cache policy '%s' (%s)", name, policy_id)
            return policy_id

        try:
            response = self._cloudfront.create_cache_policy(
                CachePolicyConfig=cache_policy_config(name, ttl)
            )
        except ClientError as e:
            if e.response["Error"]["Code"] != "CachePolicyAlreadyExists":
                raise
            # Another deployment created it between our lookup and create; adopt theirs
            logger.info("Cache policy '%s' was created concurrently, re-reading", name)
            policy_id = self.find(name)
            if policy_id is None:
                raise
            return policy_id

        policy_id = response["CachePolicy"]["Id"]
        logger.info("Created cache policy '%s' (%s)", name, policy_id)
        return policy_id

    def delete(self, name: str) -> None:
        """Delete the policy called name. Raises CachePolicyNotFoundError if missing."""
        policy_id = self.find(name)
        if policy_id is None:
            raise CachePolicyNotFoundError(name)

        try:
            etag = self._cloudfront.get_cache_policy(Id=policy_id)["ETag"]
            self._cloudfront.delete_cache_policy(Id=policy_id, IfMatch=etag)
        except ClientError as e:
            code = e.response["Error"]["Code"]
            if code == "NoSuchCachePolicy":
                raise CachePolicyNotFoundError(name) from e
            if code == "CachePolicyInUse":
                raise CachePolicyInUseError(name) from e
            raise
        logger.info("Deleted cache policy '%s' (%s)", name, policy_id)

    def delete_if_exists(self, name: str) -> bool:
        """Cleanup variant of delete(): a missing policy counts as already deleted."""
        try:
            self.delete(name)
        except CachePolicyNotFoundError:
            logger.debug("Cache policy '%s' already absent", name)
            return False
        else:
            return True
