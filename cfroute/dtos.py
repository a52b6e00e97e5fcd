"""Value objects shared by the editors, the reconciler and the store.

DistributionConfig is an immutable snapshot of a CloudFront distribution config.
Editors never mutate it; they return a new snapshot via dataclasses.replace().

CloudFront API shape (GetDistributionConfig):
    {
        "ETag": "E2QWRUHAPOMQZL",
        "DistributionConfig": {
            "CallerReference": "...",
            "Origins": {"Quantity": 1, "Items": [{"Id": "...", ...}]},
            "CacheBehaviors": {"Quantity": 0, "Items": []},
            "DefaultCacheBehavior": {...},
            ...
        }
    }
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Literal, final

from cfroute.config import TtlBounds

UpdateKind = Literal["create", "update"]
RouteAction = Literal["created", "updated", "unchanged", "deleted", "absent"]


@final
@dataclass(frozen=True)
class InlineTtl:
    ttl: TtlBounds


@final
@dataclass(frozen=True)
class PolicyRef:
    policy_id: str


CacheConfig = InlineTtl | PolicyRef


@dataclass(frozen=True)
class DistributionConfig:
    """Snapshot of a distribution config plus the ETag it was read with."""

    etag: str
    origins: tuple[dict, ...] = ()
    behaviors: tuple[dict, ...] = ()
    rest: dict[str, Any] = field(default_factory=dict)

    @property
    def origins_quantity(self) -> int:
        return len(self.origins)

    @property
    def behaviors_quantity(self) -> int:
        return len(self.behaviors)

    @classmethod
    def from_api(cls, response: dict) -> "DistributionConfig":
        config = copy.deepcopy(response["DistributionConfig"])
        origins = config.pop("Origins", {}) or {}
        behaviors = config.pop("CacheBehaviors", {}) or {}
        return cls(
            etag=response["ETag"],
            origins=tuple(origins.get("Items", [])),
            behaviors=tuple(behaviors.get("Items", [])),
            rest=config,
        )

    def to_api(self) -> dict:
        """Rebuild the DistributionConfig payload for UpdateDistribution."""
        config = copy.deepcopy(self.rest)
        # Quantity is always derived from the items, never stored separately
        config["Origins"] = {
            "Quantity": self.origins_quantity,
            "Items": [copy.deepcopy(o) for o in self.origins],
        }
        config["CacheBehaviors"] = {
            "Quantity": self.behaviors_quantity,
            "Items": [copy.deepcopy(b) for b in self.behaviors],
        }
        return config


@dataclass(frozen=True)
class RouteEvent:
    """A decision taken while reconciling a route."""

    action: str  # "add_origin", "update_origin", "noop_origin", "commit", "invalidate", ...
    target: str
    detail: str  # Human-readable description


@dataclass(frozen=True)
class ReconcileResult:
    config: DistributionConfig
    changed: bool
    origin_action: RouteAction
    behavior_action: RouteAction
    events: tuple[RouteEvent, ...] = ()

    @property
    def update_kind(self) -> UpdateKind | None:
        """'create' when the route did not exist before, 'update' when it was replaced."""
        actions = (self.origin_action, self.behavior_action)
        if not self.changed or "deleted" in actions:
            return None
        if actions == ("created", "created"):
            return "create"
        # A replaced item, or a route that was only partially present before
        return "update"


@dataclass(frozen=True)
class CommitResult:
    committed: bool
    distribution: dict | None = None
    events: tuple[RouteEvent, ...] = ()


@dataclass(frozen=True)
class InvalidationOutcome:
    """What happened to the post-update cache purge."""

    attempted: bool
    invalidation_id: str | None = None

    @property
    def failed(self) -> bool:
        return self.attempted and self.invalidation_id is None


@dataclass(frozen=True)
class SyncResult:
    """Outcome of one apply/destroy invocation."""

    distribution_id: str
    changed: bool
    update_kind: UpdateKind | None
    attempts: int
    distribution: dict | None = None
    invalidation_id: str | None = None
    events: tuple[RouteEvent, ...] = ()
    warnings: tuple[str, ...] = ()
