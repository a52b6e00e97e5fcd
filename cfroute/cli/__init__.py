import logging
import sys
from collections.abc import Callable
from importlib import metadata
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any

import click
from appdirs import user_log_dir
from rich.console import Console
from rich.logging import RichHandler

from cfroute.cli.commands import build_spec, run_apply, run_delete_policy, run_destroy
from cfroute.config import AwsConfig
from cfroute.exceptions import CfRouteError

console = Console()

app_logger = logging.getLogger("cfroute")
# Capture everything internally; handlers decide what is shown
app_logger.setLevel(logging.DEBUG)

app_name = "cfroute"
log_dir = Path(user_log_dir(app_name))
log_dir.mkdir(parents=True, exist_ok=True)
log_file_path = log_dir / f"{app_name}.log"
file_handler = TimedRotatingFileHandler(
    filename=str(log_file_path), when="D", interval=1, backupCount=7, encoding="utf-8"
)
file_handler.setLevel(logging.DEBUG)
file_formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
file_handler.setFormatter(file_formatter)
app_logger.addHandler(file_handler)

logger = logging.getLogger(__name__)

# botocore is very chatty at DEBUG
logging.getLogger("botocore").setLevel(logging.WARNING)
logging.getLogger("urllib3").setLevel(logging.WARNING)


def aws_options(func: Callable[..., Any]) -> Callable[..., Any]:
    func = click.option("--region", default=None, help="AWS region")(func)
    return click.option("--profile", default=None, help="AWS profile")(func)


def route_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by apply and destroy."""
    options = [
        click.option(
            "--config",
            "config_file",
            type=click.Path(exists=True, dir_okay=False, path_type=Path),
            default=None,
            help="JSON file with the route block (cloudFrontDistributionID, basePath, ...).",
        ),
        click.option("--distribution-id", "-d", default=None, help="CloudFront distribution id"),
        click.option("--base-path", "-p", default=None, help="Path prefix, e.g. /api"),
        click.option("--stack-name", "-s", default=None, help="Stack that owns the API"),
        click.option("--stage", default=None, help="API stage used as origin path"),
        click.option("--cache-policy-name", default=None, help="Shared cache policy name"),
        click.option("--min-ttl", type=int, default=None, help="Minimum TTL in seconds"),
        click.option("--max-ttl", type=int, default=None, help="Maximum TTL in seconds"),
        click.option("--default-ttl", type=int, default=None, help="Default TTL in seconds"),
        click.option(
            "--max-attempts",
            type=click.IntRange(min=1),
            default=3,
            show_default=True,
            help="Attempts when the distribution is modified concurrently",
        ),
        aws_options,
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group(invoke_without_command=True)
@click.option(
    "--verbose", "-v", count=True, help="Increase verbosity. -v for INFO, -vv for DEBUG logs."
)
@click.option("--version", is_flag=True, help="Show cfroute version.")
@click.pass_context
def cli(ctx: click.Context, verbose: int, version: bool) -> None:
    if version:
        _version()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        ctx.exit(0)

    if verbose > 0:
        console_handler = RichHandler(
            console=console,
            show_time=False,
            show_level=True,
            markup=False,
            tracebacks_suppress=[click],
            rich_tracebacks=True,
        )
        if verbose == 1:
            console_handler.setLevel(logging.INFO)
            console.print("[italic blue]Console verbosity: INFO[/]")
        elif verbose >= 2:  # noqa: PLR2004
            console_handler.setLevel(logging.DEBUG)
            console.print("[italic green]Console verbosity: DEBUG[/]")

        console.print(f"[italic dim]Logs saved to: {log_file_path}[/]")
        app_logger.addHandler(console_handler)


def _handle_error(e: CfRouteError) -> None:
    logger.debug("Command failed", exc_info=e)
    console.print(f"[bold red]✗ {type(e).__name__}:[/bold red] {e}", highlight=False)
    raise SystemExit(1) from None


@click.command()
@route_options
def apply(  # noqa: PLR0913
    config_file: Path | None,
    distribution_id: str | None,
    base_path: str | None,
    stack_name: str | None,
    stage: str | None,
    cache_policy_name: str | None,
    min_ttl: int | None,
    max_ttl: int | None,
    default_ttl: int | None,
    max_attempts: int,
    profile: str | None,
    region: str | None,
) -> None:
    """Adds or updates the route's origin and cache behavior."""
    try:
        spec = build_spec(
            config_file=config_file,
            distribution_id=distribution_id,
            base_path=base_path,
            stack_name=stack_name,
            stage=stage,
            cache_policy_name=cache_policy_name,
            min_ttl=min_ttl,
            max_ttl=max_ttl,
            default_ttl=default_ttl,
        )
        run_apply(spec, AwsConfig(profile=profile, region=region), max_attempts)
    except CfRouteError as e:
        _handle_error(e)


@click.command()
@route_options
def destroy(  # noqa: PLR0913
    config_file: Path | None,
    distribution_id: str | None,
    base_path: str | None,
    stack_name: str | None,
    stage: str | None,
    cache_policy_name: str | None,
    min_ttl: int | None,
    max_ttl: int | None,
    default_ttl: int | None,
    max_attempts: int,
    profile: str | None,
    region: str | None,
) -> None:
    """Removes the route's origin and cache behavior."""
    try:
        spec = build_spec(
            config_file=config_file,
            distribution_id=distribution_id,
            base_path=base_path,
            stack_name=stack_name,
            stage=stage,
            cache_policy_name=cache_policy_name,
            min_ttl=min_ttl,
            max_ttl=max_ttl,
            default_ttl=default_ttl,
        )
        run_destroy(spec, AwsConfig(profile=profile, region=region), max_attempts)
    except CfRouteError as e:
        _handle_error(e)


@click.command("delete-policy")
@click.argument("name")
@aws_options
def delete_policy(name: str, profile: str | None, region: str | None) -> None:
    """Deletes a shared cache policy by name."""
    try:
        run_delete_policy(name, AwsConfig(profile=profile, region=region))
    except CfRouteError as e:
        _handle_error(e)


cli.add_command(apply)
cli.add_command(destroy)
cli.add_command(delete_policy)


def _version() -> None:
    console.print(f"cfroute version: {metadata.version('cfroute')}", highlight=False)
    sys.exit(0)
