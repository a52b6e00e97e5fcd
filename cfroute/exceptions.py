class CfRouteError(Exception):
    """Base class for every error raised while synchronizing a route."""


class RouteValidationError(CfRouteError, ValueError):
    """Raised when a route definition is missing required fields or has invalid values."""


class MissingPolicyRegistryError(CfRouteError):
    """Raised when a route names a shared cache policy but no registry was wired in."""

    def __init__(self, policy_name: str):
        self.policy_name = policy_name
        super().__init__(
            f"Route uses cache policy '{policy_name}' but no cache policy registry "
            f"was configured."
        )


class NotFoundError(CfRouteError):
    """Raised when a referenced AWS resource does not exist."""


class BackendNotFoundError(NotFoundError):
    """Raised when the backend address for a deployment cannot be resolved."""

    def __init__(self, stack_name: str, reason: str):
        self.stack_name = stack_name
        super().__init__(f"Cannot resolve backend for stack '{stack_name}': {reason}")


class DistributionNotFoundError(NotFoundError):
    def __init__(self, distribution_id: str):
        self.distribution_id = distribution_id
        super().__init__(f"CloudFront distribution '{distribution_id}' not found.")


class CachePolicyNotFoundError(NotFoundError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Cache policy '{name}' not found.")


class CachePolicyInUseError(CfRouteError):
    """Raised when a cache policy is still referenced by a distribution."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Cache policy '{name}' is still attached to a distribution.")


class DuplicateOriginError(CfRouteError):
    def __init__(self, origin_id: str):
        self.origin_id = origin_id
        super().__init__(f"Origin '{origin_id}' already exists in distribution config.")


class VersionConflictError(CfRouteError):
    """Raised when the distribution changed between read and write (stale ETag)."""

    def __init__(self, distribution_id: str, etag: str):
        self.distribution_id = distribution_id
        self.etag = etag
        super().__init__(
            f"Distribution '{distribution_id}' was modified concurrently (ETag '{etag}' is stale)."
        )


class ConflictRetriesExceededError(CfRouteError):
    def __init__(self, distribution_id: str, attempts: int):
        self.distribution_id = distribution_id
        self.attempts = attempts
        super().__init__(
            f"Gave up updating distribution '{distribution_id}' after {attempts} attempts "
            f"due to concurrent modifications."
        )


class RouteTimeoutError(CfRouteError):
    """Raised when the deadline passes before the configuration is committed."""
