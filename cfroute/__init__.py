"""Keep an API route in sync with an existing CloudFront distribution."""

from cfroute.config import AwsConfig, RouteSpec, TtlBounds
from cfroute.dtos import DistributionConfig, ReconcileResult, RouteEvent, SyncResult
from cfroute.reconciler import Reconciler
from cfroute.route import CloudFrontRoute

__all__ = [
    "AwsConfig",
    "CloudFrontRoute",
    "DistributionConfig",
    "Reconciler",
    "ReconcileResult",
    "RouteEvent",
    "RouteSpec",
    "SyncResult",
    "TtlBounds",
]
