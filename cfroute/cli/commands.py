import json
from pathlib import Path
from typing import Any

import boto3
from rich.console import Console

from cfroute.config import AwsConfig, RouteSpec, TtlBounds
from cfroute.dtos import SyncResult
from cfroute.exceptions import RouteValidationError
from cfroute.policies import CachePolicyRegistry
from cfroute.route import CloudFrontRoute

console = Console()


def load_route_file(path: Path) -> dict[str, Any]:
    """Read a camelCase route block from a JSON file."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise RouteValidationError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise RouteValidationError(f"{path} must contain a JSON object")
    return data


def build_spec(  # noqa: PLR0913
    *,
    config_file: Path | None,
    distribution_id: str | None,
    base_path: str | None,
    stack_name: str | None,
    stage: str | None,
    cache_policy_name: str | None,
    min_ttl: int | None,
    max_ttl: int | None,
    default_ttl: int | None,
) -> RouteSpec:
    """Merge the route file (if any) with command line overrides."""
    data = load_route_file(config_file) if config_file else {}
    overrides = {
        "cloudFrontDistributionID": distribution_id,
        "basePath": base_path,
        "stackName": stack_name,
        "stage": stage,
        "cachePolicyName": cache_policy_name,
        "minTTL": min_ttl,
        "maxTTL": max_ttl,
        "defaultTTL": default_ttl,
    }
    data.update({key: value for key, value in overrides.items() if value is not None})
    return RouteSpec.from_dict(data, stack_name=data.get("stackName", ""))


def _print_result(result: SyncResult) -> None:
    for event in result.events:
        console.print(f"  • {event.detail}")

    if result.changed:
        console.print(
            f"\n[bold green]✓ Distribution {result.distribution_id} updated[/bold green] "
            f"(attempts: {result.attempts})"
        )
    else:
        console.print(f"\n[green]✓ Distribution {result.distribution_id} is up to date[/green]")

    if result.invalidation_id:
        console.print(f"  Invalidation: [cyan]{result.invalidation_id}[/cyan]")
    for warning in result.warnings:
        console.print(f"[yellow]Warning: {warning}[/yellow]")


def run_apply(spec: RouteSpec, aws: AwsConfig, max_attempts: int) -> SyncResult:
    console.print(f"[bold]Applying route[/bold] {spec.path_pattern} → {spec.distribution_id}")
    if spec.cache_policy_name:
        console.print(f"  Cache policy: [cyan]{spec.cache_policy_name}[/cyan]")
    else:
        console.print(f"  TTL: {ttl_summary(spec.ttl)}", highlight=False)
    route = CloudFrontRoute.from_session(spec, aws, max_attempts=max_attempts)
    with console.status("Updating distribution..."):
        result = route.apply()
    _print_result(result)
    return result


def run_destroy(spec: RouteSpec, aws: AwsConfig, max_attempts: int) -> SyncResult:
    console.print(f"[bold]Removing route[/bold] {spec.path_pattern} ← {spec.distribution_id}")
    route = CloudFrontRoute.from_session(spec, aws, max_attempts=max_attempts)
    with console.status("Updating distribution..."):
        result = route.destroy()
    _print_result(result)
    return result


def run_delete_policy(name: str, aws: AwsConfig) -> None:
    session = boto3.Session(profile_name=aws.profile, region_name=aws.region)
    registry = CachePolicyRegistry(session.client("cloudfront"))
    registry.delete(name)
    console.print(f"[bold green]✓ Deleted cache policy '{name}'[/bold green]")


def ttl_summary(ttl: TtlBounds) -> str:
    return f"min {ttl.min_ttl}s / default {ttl.default_ttl}s / max {ttl.max_ttl}s"
