from dataclasses import dataclass, field
from typing import Any

from cfroute.exceptions import RouteValidationError

ALL_METHODS = ("GET", "HEAD", "POST", "PUT", "PATCH", "OPTIONS", "DELETE")
# CloudFront only accepts these exact method sets
ALLOWED_METHOD_SETS = (
    frozenset({"GET", "HEAD"}),
    frozenset({"GET", "HEAD", "OPTIONS"}),
    frozenset(ALL_METHODS),
)
CACHED_METHOD_SETS = (
    frozenset({"GET", "HEAD"}),
    frozenset({"GET", "HEAD", "OPTIONS"}),
)


@dataclass(frozen=True, kw_only=True)
class AwsConfig:
    """AWS configuration for cfroute.

    Both profile and region are optional overrides. When not specified, the standard
    boto3 credential and region resolution chain is used (environment variables,
    shared config/credentials files, SSO, instance/task roles).

    Examples:
    ```python
    AwsConfig()  # Uses env vars or the default profile
    AwsConfig(profile="prod-profile", region="eu-west-1")
    ```
    """

    profile: str | None = None
    region: str | None = None


@dataclass(frozen=True, kw_only=True)
class TtlBounds:
    """Cache TTL bounds in seconds. A minimum of zero means responses are not cached."""

    min_ttl: int = 1
    max_ttl: int = 31536000
    default_ttl: int = 86400

    def __post_init__(self) -> None:
        for name in ("min_ttl", "max_ttl", "default_ttl"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise RouteValidationError(f"{name} must be a non-negative integer, got {value!r}")
        if not self.min_ttl <= self.default_ttl <= self.max_ttl:
            raise RouteValidationError(
                f"TTL bounds must satisfy min_ttl <= default_ttl <= max_ttl, got "
                f"{self.min_ttl}/{self.default_ttl}/{self.max_ttl}"
            )

    @property
    def caches(self) -> bool:
        return self.min_ttl > 0


def _check_range(name: str, value: Any, low: int, high: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or not low <= value <= high:
        raise RouteValidationError(
            f"{name} must be an integer between {low} and {high}, got {value!r}"
        )


def _normalize_methods(name: str, value: Any) -> tuple[str, ...]:
    """Upper-cased tuple, so equality comparisons are stable."""
    if not isinstance(value, list | tuple) or not all(isinstance(m, str) for m in value):
        raise RouteValidationError(f"{name} must be a list of HTTP method names, got {value!r}")
    return tuple(m.upper() for m in value)


@dataclass(frozen=True, kw_only=True)
class RouteSpec:
    """Desired state of one route in a CloudFront distribution.

    Attributes:
        distribution_id: Id of the CloudFront distribution to update.
        base_path: Path prefix routed to the backend, e.g. "/api".
        stack_name: Deployment (CloudFormation stack) that owns the backend. The origin
            id is derived from it.
        stage: API stage, used as the origin path when set.
        origin_connection_attempts: Connection attempts CloudFront makes to the origin (1-3).
        origin_connection_timeout: Seconds to wait for a connection to the origin (1-10).
        origin_keepalive_timeout: Seconds to keep an idle origin connection open (1-60).
        origin_read_timeout: Seconds to wait for an origin response (1-60).
        ttl: Inline TTL bounds. Also used to seed a shared cache policy on creation.
        cache_policy_name: Name of a shared cache policy. When set, the behavior
            references the policy instead of carrying inline TTLs.
        allowed_methods: HTTP methods forwarded to the origin.
        cached_methods: HTTP methods whose responses are cached.
        invalidate_on_update: Purge cached content under the base path after an update.
        delete_cache_policy_on_destroy: Try to delete the shared cache policy on destroy.
    """

    distribution_id: str
    base_path: str
    stack_name: str
    stage: str | None = None
    origin_connection_attempts: int = 3
    origin_connection_timeout: int = 10
    origin_keepalive_timeout: int = 5
    origin_read_timeout: int = 30
    ttl: TtlBounds = field(default_factory=TtlBounds)
    cache_policy_name: str | None = None
    allowed_methods: tuple[str, ...] = ALL_METHODS
    cached_methods: tuple[str, ...] = ("GET", "HEAD")
    invalidate_on_update: bool = True
    delete_cache_policy_on_destroy: bool = False

    def __post_init__(self) -> None:
        for name in ("distribution_id", "base_path", "stack_name"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise RouteValidationError(f"'{name}' is required")
        if self.stage is not None and not isinstance(self.stage, str):
            raise RouteValidationError(f"stage must be a string, got {type(self.stage).__name__}")
        if not self.base_path.startswith("/"):
            raise RouteValidationError(f"base_path must start with '/', got '{self.base_path}'")
        if self.base_path.rstrip("/*") == "":
            raise RouteValidationError(
                "base_path must not be the root path; the default behavior is not managed"
            )

        _check_range("origin_connection_attempts", self.origin_connection_attempts, 1, 3)
        _check_range("origin_connection_timeout", self.origin_connection_timeout, 1, 10)
        _check_range("origin_keepalive_timeout", self.origin_keepalive_timeout, 1, 60)
        _check_range("origin_read_timeout", self.origin_read_timeout, 1, 60)

        if not isinstance(self.ttl, TtlBounds):
            raise RouteValidationError(f"ttl must be TtlBounds, got {type(self.ttl).__name__}")
        if self.cache_policy_name is not None:
            if not isinstance(self.cache_policy_name, str):
                raise RouteValidationError(
                    f"cache_policy_name must be a string, got "
                    f"{type(self.cache_policy_name).__name__}"
                )
            if not self.cache_policy_name.strip():
                raise RouteValidationError("cache_policy_name must not be empty")

        allowed = _normalize_methods("allowed_methods", self.allowed_methods)
        cached = _normalize_methods("cached_methods", self.cached_methods)
        if frozenset(allowed) not in ALLOWED_METHOD_SETS:
            raise RouteValidationError(f"Unsupported allowed_methods: {', '.join(allowed)}")
        if frozenset(cached) not in CACHED_METHOD_SETS or not set(cached) <= set(allowed):
            raise RouteValidationError(f"Unsupported cached_methods: {', '.join(cached)}")
        object.__setattr__(self, "allowed_methods", allowed)
        object.__setattr__(self, "cached_methods", cached)

    @property
    def origin_id(self) -> str:
        return f"{self.stack_name}-origin"

    @property
    def origin_path(self) -> str:
        return f"/{self.stage}" if self.stage else ""

    @property
    def path_pattern(self) -> str:
        """Behavior path pattern, e.g. "/api" -> "/api/*"."""
        if self.base_path.endswith("*"):
            return self.base_path
        return f"{self.base_path.rstrip('/')}/*"

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], *, stack_name: str, stage: str | None = None
    ) -> "RouteSpec":
        """Build a RouteSpec from a camelCase route block.

        Example:
            {
                "cloudFrontDistributionID": "E2ABCDEF",
                "basePath": "/api",
                "originReadTimeout": 60,
                "minTTL": 0,
                "cachePolicyName": "api-cache"
            }
        """
        if not isinstance(data, dict):
            raise RouteValidationError(f"Route block must be a mapping, got {type(data).__name__}")

        optional = {
            "originConnectionAttempts": "origin_connection_attempts",
            "originConnectionTimeout": "origin_connection_timeout",
            "originKeepaliveTimeout": "origin_keepalive_timeout",
            "originReadTimeout": "origin_read_timeout",
            "cachePolicyName": "cache_policy_name",
            "invalidateOnUpdate": "invalidate_on_update",
            "deleteCachePolicyOnDestroy": "delete_cache_policy_on_destroy",
        }
        kwargs: dict[str, Any] = {
            key: data[source] for source, key in optional.items() if source in data
        }
        if "allowedMethods" in data:
            kwargs["allowed_methods"] = data["allowedMethods"]
        if "cachedMethods" in data:
            kwargs["cached_methods"] = data["cachedMethods"]

        ttl_keys = {"minTTL": "min_ttl", "maxTTL": "max_ttl", "defaultTTL": "default_ttl"}
        ttl = {key: data[source] for source, key in ttl_keys.items() if source in data}
        if ttl:
            kwargs["ttl"] = TtlBounds(**ttl)

        return cls(
            distribution_id=data.get("cloudFrontDistributionID", ""),
            base_path=data.get("basePath", ""),
            stack_name=data.get("stackName", stack_name),
            stage=data.get("stage", stage),
            **kwargs,
        )
