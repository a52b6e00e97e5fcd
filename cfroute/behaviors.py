"""Cache behavior operations on a DistributionConfig snapshot.

Behavior order is request-routing priority: CloudFront picks the first behavior whose
path pattern matches. After every insert the list is sorted so that patterns with
more path segments come first. Equal specificity keeps insertion order.
"""

from dataclasses import replace

from cfroute.config import RouteSpec
from cfroute.dtos import CacheConfig, DistributionConfig, InlineTtl, PolicyRef


def path_specificity(path_pattern: str) -> int:
    """Number of segments, e.g. "/api/v2/*" -> 4 ("", "api", "v2", "*")."""
    return len(path_pattern.split("/"))


def _sorted_by_specificity(behaviors: tuple[dict, ...]) -> tuple[dict, ...]:
    # sorted() is stable, so ties keep their relative order
    return tuple(sorted(behaviors, key=lambda b: -path_specificity(b["PathPattern"])))


def find_behavior(config: DistributionConfig, target_origin_id: str) -> dict | None:
    return next((b for b in config.behaviors if b["TargetOriginId"] == target_origin_id), None)


def insert_behavior(config: DistributionConfig, behavior: dict) -> DistributionConfig:
    return replace(config, behaviors=_sorted_by_specificity((*config.behaviors, behavior)))


def remove_behavior(config: DistributionConfig, target_origin_id: str) -> DistributionConfig:
    """Remove the first behavior targeting target_origin_id. No-op if absent."""
    for idx, behavior in enumerate(config.behaviors):
        if behavior["TargetOriginId"] == target_origin_id:
            return replace(
                config, behaviors=config.behaviors[:idx] + config.behaviors[idx + 1 :]
            )
    return config


def build_behavior(spec: RouteSpec, cache: CacheConfig) -> dict:
    behavior = {
        "TargetOriginId": spec.origin_id,
        "PathPattern": spec.path_pattern,
        "ViewerProtocolPolicy": "redirect-to-https",
        "AllowedMethods": {
            "Quantity": len(spec.allowed_methods),
            "Items": list(spec.allowed_methods),
            "CachedMethods": {
                "Quantity": len(spec.cached_methods),
                "Items": list(spec.cached_methods),
            },
        },
        "SmoothStreaming": False,
        "Compress": True,
        "LambdaFunctionAssociations": {"Quantity": 0, "Items": []},
        "FunctionAssociations": {"Quantity": 0, "Items": []},
        "FieldLevelEncryptionId": "",
        "TrustedSigners": {"Enabled": False, "Quantity": 0, "Items": []},
        "TrustedKeyGroups": {"Enabled": False, "Quantity": 0, "Items": []},
    }
    if isinstance(cache, PolicyRef):
        behavior["CachePolicyId"] = cache.policy_id
    else:
        behavior.update(
            {
                "MinTTL": cache.ttl.min_ttl,
                "MaxTTL": cache.ttl.max_ttl,
                "DefaultTTL": cache.ttl.default_ttl,
                "ForwardedValues": {
                    "QueryString": False,
                    "Cookies": {"Forward": "none"},
                    "Headers": {"Quantity": 0, "Items": []},
                    "QueryStringCacheKeys": {"Quantity": 0, "Items": []},
                },
            }
        )
    return behavior


def behavior_differs(existing: dict, spec: RouteSpec, cache: CacheConfig) -> bool:
    if existing.get("PathPattern") != spec.path_pattern:
        return True
    if _methods_differ(existing, spec):
        return True
    if isinstance(cache, PolicyRef):
        return existing.get("CachePolicyId") != cache.policy_id
    if existing.get("CachePolicyId"):
        # Switching from a shared policy back to inline TTLs
        return True
    return (
        existing.get("MinTTL") != cache.ttl.min_ttl
        or existing.get("MaxTTL") != cache.ttl.max_ttl
        or existing.get("DefaultTTL") != cache.ttl.default_ttl
    )


def _methods_differ(existing: dict, spec: RouteSpec) -> bool:
    # CloudFront does not keep method order
    allowed = existing.get("AllowedMethods") or {}
    cached = allowed.get("CachedMethods") or {}
    if set(allowed.get("Items", [])) != set(spec.allowed_methods):
        return True
    return set(cached.get("Items", [])) != set(spec.cached_methods)


def cache_config_for(spec: RouteSpec, policy_id: str | None) -> CacheConfig:
    return PolicyRef(policy_id) if policy_id else InlineTtl(spec.ttl)
