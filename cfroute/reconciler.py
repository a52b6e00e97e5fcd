"""Decision core: diff a route's desired state against a distribution config.

The reconciler never writes. It returns a new snapshot plus a changed flag, and the
caller decides whether to commit it. Existing origins and behaviors are replaced as
a whole when they differ, never patched in place.
"""

import logging

from cfroute.behaviors import (
    behavior_differs,
    build_behavior,
    cache_config_for,
    find_behavior,
    insert_behavior,
    remove_behavior,
)
from cfroute.config import RouteSpec
from cfroute.dtos import DistributionConfig, ReconcileResult, RouteAction, RouteEvent
from cfroute.exceptions import MissingPolicyRegistryError
from cfroute.origins import build_origin, find_origin, insert_origin, origin_differs, remove_origin
from cfroute.policies import CachePolicyRegistry
from cfroute.resolver import AddressResolver

logger = logging.getLogger(__name__)


class Reconciler:
    def __init__(
        self, resolver: AddressResolver, policies: CachePolicyRegistry | None = None
    ) -> None:
        self.resolver = resolver
        self.policies = policies

    def apply(self, spec: RouteSpec, config: DistributionConfig) -> ReconcileResult:
        events: list[RouteEvent] = []
        domain_name = self.resolver.resolve(spec.stack_name)

        config, origin_action = self._apply_origin(spec, config, domain_name, events)

        policy_id = None
        if spec.cache_policy_name:
            if self.policies is None:
                raise MissingPolicyRegistryError(spec.cache_policy_name)
            # Looked up on every run; policies can be deleted out of band
            policy_id = self.policies.get_or_create(spec.cache_policy_name, spec.ttl)

        config, behavior_action = self._apply_behavior(spec, config, policy_id, events)

        return ReconcileResult(
            config=config,
            changed=(origin_action, behavior_action) != ("unchanged", "unchanged"),
            origin_action=origin_action,
            behavior_action=behavior_action,
            events=tuple(events),
        )

    def destroy(self, spec: RouteSpec, config: DistributionConfig) -> ReconcileResult:
        events: list[RouteEvent] = []
        pattern = spec.path_pattern

        origin_action: RouteAction = "absent"
        if find_origin(config, spec.origin_id) is not None:
            config = remove_origin(config, spec.origin_id)
            origin_action = "deleted"
            _record(events, "delete_origin", spec.origin_id, f"Delete origin '{spec.origin_id}'")
        else:
            _record(events, "noop_origin", spec.origin_id, "Origin already absent")

        behavior_action: RouteAction = "absent"
        if find_behavior(config, spec.origin_id) is not None:
            config = remove_behavior(config, spec.origin_id)
            behavior_action = "deleted"
            _record(events, "delete_behavior", pattern, f"Delete behavior '{pattern}'")
        else:
            _record(events, "noop_behavior", pattern, "Behavior already absent")

        return ReconcileResult(
            config=config,
            changed="deleted" in (origin_action, behavior_action),
            origin_action=origin_action,
            behavior_action=behavior_action,
            events=tuple(events),
        )

    @staticmethod
    def _apply_origin(
        spec: RouteSpec, config: DistributionConfig, domain_name: str, events: list[RouteEvent]
    ) -> tuple[DistributionConfig, RouteAction]:
        existing = find_origin(config, spec.origin_id)
        if existing is None:
            _record(events, "add_origin", spec.origin_id, f"Add origin '{spec.origin_id}'")
            return insert_origin(config, build_origin(spec, domain_name)), "created"

        if origin_differs(existing, spec, domain_name):
            _record(events, "update_origin", spec.origin_id, f"Update origin '{spec.origin_id}'")
            config = remove_origin(config, spec.origin_id)
            return insert_origin(config, build_origin(spec, domain_name)), "updated"

        _record(events, "noop_origin", spec.origin_id, f"Origin '{spec.origin_id}' up to date")
        return config, "unchanged"

    @staticmethod
    def _apply_behavior(
        spec: RouteSpec,
        config: DistributionConfig,
        policy_id: str | None,
        events: list[RouteEvent],
    ) -> tuple[DistributionConfig, RouteAction]:
        cache = cache_config_for(spec, policy_id)
        pattern = spec.path_pattern

        existing = find_behavior(config, spec.origin_id)
        if existing is None:
            _record(events, "add_behavior", pattern, f"Add behavior '{pattern}'")
            return insert_behavior(config, build_behavior(spec, cache)), "created"

        if behavior_differs(existing, spec, cache):
            _record(events, "update_behavior", pattern, f"Update behavior '{pattern}'")
            config = remove_behavior(config, spec.origin_id)
            return insert_behavior(config, build_behavior(spec, cache)), "updated"

        _record(events, "noop_behavior", pattern, f"Behavior '{pattern}' up to date")
        return config, "unchanged"


def _record(events: list[RouteEvent], action: str, target: str, detail: str) -> None:
    events.append(RouteEvent(action=action, target=target, detail=detail))
    logger.info(" -- %s", detail)
