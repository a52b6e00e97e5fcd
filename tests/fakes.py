import copy
import itertools
from dataclasses import replace

from botocore.exceptions import ClientError

from cfroute.config import RouteSpec
from cfroute.dtos import DistributionConfig
from cfroute.exceptions import VersionConflictError

API_DOMAIN = "abc123.execute-api.us-east-1.amazonaws.com"


def client_error(code: str, message: str = "error", operation: str = "Operation") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


def make_spec(**overrides) -> RouteSpec:
    kwargs = {"distribution_id": "D1", "base_path": "/api", "stack_name": "D1"}
    kwargs.update(overrides)
    return RouteSpec(**kwargs)


def default_origin(origin_id: str = "site-bucket") -> dict:
    return {
        "Id": origin_id,
        "DomainName": "site.s3.amazonaws.com",
        "OriginPath": "",
        "S3OriginConfig": {"OriginAccessIdentity": ""},
    }


def foreign_behavior(path_pattern: str, origin_id: str) -> dict:
    return {"TargetOriginId": origin_id, "PathPattern": path_pattern}


def api_response(
    etag: str = "E1", origins: list[dict] | None = None, behaviors: list[dict] | None = None
) -> dict:
    origins = origins if origins is not None else [default_origin()]
    behaviors = behaviors or []
    return {
        "ETag": etag,
        "DistributionConfig": {
            "CallerReference": "ref-1",
            "Comment": "",
            "Enabled": True,
            "Origins": {"Quantity": len(origins), "Items": origins},
            "CacheBehaviors": {"Quantity": len(behaviors), "Items": behaviors},
            "DefaultCacheBehavior": {"TargetOriginId": "site-bucket"},
        },
    }


class FakeResolver:
    def __init__(self, domain_name: str = API_DOMAIN) -> None:
        self.domain_name = domain_name
        self.calls: list[str] = []

    def resolve(self, stack_name: str) -> str:
        self.calls.append(stack_name)
        return self.domain_name


class FakeStore:
    """In-memory ConfigStore with ETag checks, like CloudFront's IfMatch."""

    def __init__(self, response: dict | None = None) -> None:
        self._config = DistributionConfig.from_api(response or api_response())
        self._etags = (f"E{n}" for n in itertools.count(2))
        self.commits: list[DistributionConfig] = []
        self.reads = 0

    @property
    def current(self) -> DistributionConfig:
        return self._config

    def get_config(self, distribution_id: str) -> DistributionConfig:
        self.reads += 1
        return copy.deepcopy(self._config)

    def commit(self, distribution_id: str, config: DistributionConfig) -> dict:
        if config.etag != self._config.etag:
            raise VersionConflictError(distribution_id, config.etag)
        self.commits.append(config)
        self._config = DistributionConfig(
            etag=next(self._etags),
            origins=config.origins,
            behaviors=config.behaviors,
            rest=config.rest,
        )
        return {"Id": distribution_id, "Status": "InProgress", "ETag": self._config.etag}

    def modify_concurrently(self, **changes) -> None:
        """Simulate another writer changing the distribution."""
        self._config = replace(self._config, etag=next(self._etags), **changes)
