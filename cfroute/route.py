import logging
import time
from collections.abc import Callable
from dataclasses import replace

import boto3
from botocore.client import BaseClient
from botocore.exceptions import ClientError

from cfroute.config import AwsConfig, RouteSpec
from cfroute.dtos import CommitResult, ReconcileResult, RouteEvent, SyncResult
from cfroute.exceptions import (
    CachePolicyInUseError,
    ConflictRetriesExceededError,
    RouteTimeoutError,
    VersionConflictError,
)
from cfroute.invalidation import maybe_invalidate
from cfroute.policies import CachePolicyRegistry
from cfroute.reconciler import Reconciler
from cfroute.resolver import AddressResolver, StackAddressResolver
from cfroute.store import CloudFrontConfigStore, ConfigStore, commit_if_changed

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_BASE = 1.0


class CloudFrontRoute:
    """Keeps one API route in sync with a CloudFront distribution.

    apply() adds or updates the route's origin and cache behavior, destroy() removes
    them. Each call runs fetch -> resolve -> diff -> commit -> invalidate once, and
    restarts from a fresh read when the distribution was changed concurrently.
    """

    def __init__(  # noqa: PLR0913
        self,
        spec: RouteSpec,
        *,
        store: ConfigStore,
        resolver: AddressResolver,
        cloudfront: BaseClient,
        policies: CachePolicyRegistry | None = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff_base: float = DEFAULT_BACKOFF_BASE,
        deadline: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        self.spec = spec
        self.store = store
        self.cloudfront = cloudfront
        self.policies = policies
        self.reconciler = Reconciler(resolver, policies)
        self.max_attempts = max_attempts
        self.backoff_base = backoff_base
        self._sleep = sleep
        self._clock = clock
        # Absolute monotonic time after which nothing is committed
        self._deadline = None if deadline is None else clock() + deadline

    @classmethod
    def from_session(
        cls, spec: RouteSpec, aws: AwsConfig | None = None, **kwargs: object
    ) -> "CloudFrontRoute":
        aws = aws or AwsConfig()
        session = boto3.Session(profile_name=aws.profile, region_name=aws.region)
        cloudfront = session.client("cloudfront")
        cloudformation = session.client("cloudformation")
        return cls(
            spec,
            store=CloudFrontConfigStore(cloudfront),
            resolver=StackAddressResolver(cloudformation, session.region_name),
            cloudfront=cloudfront,
            policies=CachePolicyRegistry(cloudfront),
            **kwargs,
        )

    def apply(self) -> SyncResult:
        self._log_header("UpSert")
        result, commit, attempts = self._converge(self.reconciler.apply)
        committed = commit.committed

        warnings: list[str] = []
        events = list(result.events)
        invalidation_id = None
        if committed and self.spec.invalidate_on_update:
            pattern = self.spec.path_pattern
            outcome = maybe_invalidate(
                self.cloudfront,
                self.spec.distribution_id,
                pattern,
                result.update_kind,
                self.spec.ttl.caches,
            )
            invalidation_id = outcome.invalidation_id
            if outcome.failed:
                warnings.append(f"Invalidation of {pattern} failed")
                events.append(RouteEvent("invalidate", pattern, "Invalidation failed"))
            elif invalidation_id:
                events.append(
                    RouteEvent("invalidate", pattern, f"Created invalidation {invalidation_id}")
                )

        return SyncResult(
            distribution_id=self.spec.distribution_id,
            changed=committed,
            update_kind=result.update_kind,
            attempts=attempts,
            distribution=commit.distribution,
            invalidation_id=invalidation_id,
            events=tuple(events),
            warnings=tuple(warnings),
        )

    def destroy(self) -> SyncResult:
        self._log_header("Delete")
        result, commit, attempts = self._converge(self.reconciler.destroy)

        warnings: list[str] = []
        if self.spec.cache_policy_name and self.spec.delete_cache_policy_on_destroy:
            warning = self._cleanup_cache_policy(self.spec.cache_policy_name)
            if warning:
                warnings.append(warning)

        return SyncResult(
            distribution_id=self.spec.distribution_id,
            changed=commit.committed,
            update_kind=None,
            attempts=attempts,
            distribution=commit.distribution,
            events=result.events,
            warnings=tuple(warnings),
        )

    def _converge(
        self, reconcile: Callable[..., ReconcileResult]
    ) -> tuple[ReconcileResult, CommitResult, int]:
        """Run read -> diff -> commit until it lands, retrying on stale ETags."""
        distribution_id = self.spec.distribution_id
        for attempt in range(1, self.max_attempts + 1):
            config = self.store.get_config(distribution_id)
            result = reconcile(self.spec, config)

            if result.changed and self._deadline is not None and self._clock() > self._deadline:
                raise RouteTimeoutError(
                    f"Deadline exceeded before committing distribution '{distribution_id}'"
                )

            try:
                commit = commit_if_changed(self.store, distribution_id, result)
            except VersionConflictError:
                if attempt == self.max_attempts:
                    break
                delay = self.backoff_base * 2 ** (attempt - 1)
                logger.warning(
                    "Distribution %s changed concurrently (attempt %d/%d), retrying in %.1fs",
                    distribution_id,
                    attempt,
                    self.max_attempts,
                    delay,
                )
                self._sleep(delay)
                continue

            return replace(result, events=result.events + commit.events), commit, attempt

        raise ConflictRetriesExceededError(distribution_id, self.max_attempts)

    def _cleanup_cache_policy(self, name: str) -> str | None:
        """Best-effort deletion of the shared policy. Returns a warning on failure."""
        if self.policies is None:
            return None
        try:
            self.policies.delete_if_exists(name)
        except CachePolicyInUseError:
            logger.warning("Cache policy '%s' is still in use, keeping it", name)
            return f"Cache policy '{name}' is still in use"
        except ClientError as e:
            logger.warning("Failed to delete cache policy '%s': %s", name, e)
            return f"Failed to delete cache policy '{name}': {e}"
        return None

    def _log_header(self, operation: str) -> None:
        logger.info("CloudFront API route %s operation", operation)
        logger.info(" -- Distribution id: %s", self.spec.distribution_id)
        logger.info(" -- Base path: %s", self.spec.path_pattern)
