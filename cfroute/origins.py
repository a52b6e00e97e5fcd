"""Origin set operations on a DistributionConfig snapshot.

Origins are unique by "Id". Every operation returns a new snapshot.
"""

from dataclasses import replace

from cfroute.config import RouteSpec
from cfroute.dtos import DistributionConfig
from cfroute.exceptions import DuplicateOriginError


def find_origin(config: DistributionConfig, origin_id: str) -> dict | None:
    return next((o for o in config.origins if o["Id"] == origin_id), None)


def insert_origin(config: DistributionConfig, origin: dict) -> DistributionConfig:
    if find_origin(config, origin["Id"]) is not None:
        raise DuplicateOriginError(origin["Id"])
    return replace(config, origins=(*config.origins, origin))


def remove_origin(config: DistributionConfig, origin_id: str) -> DistributionConfig:
    """Remove the first origin with origin_id. Returns config unchanged if absent."""
    for idx, origin in enumerate(config.origins):
        if origin["Id"] == origin_id:
            return replace(config, origins=config.origins[:idx] + config.origins[idx + 1 :])
    return config


def build_origin(spec: RouteSpec, domain_name: str) -> dict:
    return {
        "Id": spec.origin_id,
        "DomainName": domain_name,
        "OriginPath": spec.origin_path,
        "CustomHeaders": {"Quantity": 0, "Items": []},
        "ConnectionAttempts": spec.origin_connection_attempts,
        "ConnectionTimeout": spec.origin_connection_timeout,
        # API Gateway is a custom origin, never an S3 origin
        "CustomOriginConfig": {
            "HTTPPort": 80,
            "HTTPSPort": 443,
            "OriginProtocolPolicy": "https-only",
            "OriginKeepaliveTimeout": spec.origin_keepalive_timeout,
            "OriginReadTimeout": spec.origin_read_timeout,
            "OriginSslProtocols": {"Quantity": 1, "Items": ["TLSv1.2"]},
        },
    }


def origin_differs(existing: dict, spec: RouteSpec, domain_name: str) -> bool:
    """Compare the address and every tuning field we manage."""
    custom = existing.get("CustomOriginConfig", {})
    return (
        existing.get("DomainName") != domain_name
        or existing.get("OriginPath", "") != spec.origin_path
        or existing.get("ConnectionAttempts") != spec.origin_connection_attempts
        or existing.get("ConnectionTimeout") != spec.origin_connection_timeout
        or custom.get("OriginKeepaliveTimeout") != spec.origin_keepalive_timeout
        or custom.get("OriginReadTimeout") != spec.origin_read_timeout
    )
