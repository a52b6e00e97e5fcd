import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from cfroute.cli import cli
from cfroute.cli.commands import build_spec
from cfroute.config import AwsConfig, TtlBounds
from cfroute.dtos import SyncResult
from cfroute.exceptions import BackendNotFoundError, CachePolicyNotFoundError, RouteValidationError


def _build_spec(**overrides):
    kwargs = {
        "config_file": None,
        "distribution_id": None,
        "base_path": None,
        "stack_name": None,
        "stage": None,
        "cache_policy_name": None,
        "min_ttl": None,
        "max_ttl": None,
        "default_ttl": None,
    }
    kwargs.update(overrides)
    return build_spec(**kwargs)


def test_build_spec_from_options():
    spec = _build_spec(distribution_id="D1", base_path="/api", stack_name="svc", min_ttl=0)

    assert spec.distribution_id == "D1"
    assert spec.origin_id == "svc-origin"
    assert spec.ttl == TtlBounds(min_ttl=0)


def test_build_spec_options_override_file(tmp_path):
    route_file = tmp_path / "route.json"
    route_file.write_text(
        json.dumps(
            {
                "cloudFrontDistributionID": "D1",
                "basePath": "/api",
                "stackName": "svc",
                "originReadTimeout": 45,
            }
        )
    )

    spec = _build_spec(config_file=route_file, base_path="/v2")

    assert spec.base_path == "/v2"
    assert spec.origin_read_timeout == 45
    assert spec.stack_name == "svc"


def test_build_spec_invalid_json(tmp_path):
    route_file = tmp_path / "route.json"
    route_file.write_text("{not json")

    with pytest.raises(RouteValidationError, match="Invalid JSON"):
        _build_spec(config_file=route_file)


def test_apply_command_runs_apply():
    result_obj = SyncResult(distribution_id="D1", changed=True, update_kind="create", attempts=1)
    with patch("cfroute.cli.run_apply", return_value=result_obj) as mock_run:
        result = CliRunner().invoke(
            cli,
            ["apply", "-d", "D1", "-p", "/api", "-s", "svc"]
            + ["--profile", "dev", "--region", "eu-west-1"],
        )

    assert result.exit_code == 0, result.output
    spec, aws, max_attempts = mock_run.call_args.args
    assert spec.distribution_id == "D1"
    assert spec.path_pattern == "/api/*"
    assert aws == AwsConfig(profile="dev", region="eu-west-1")
    assert max_attempts == 3


def test_apply_command_reports_validation_errors():
    with patch("cfroute.cli.run_apply") as mock_run:
        result = CliRunner().invoke(cli, ["apply", "-p", "/api", "-s", "svc"])

    assert result.exit_code == 1
    assert "distribution_id" in result.output
    mock_run.assert_not_called()


def test_destroy_command_reports_domain_errors():
    with patch(
        "cfroute.cli.run_destroy", side_effect=BackendNotFoundError("svc", "stack missing")
    ):
        result = CliRunner().invoke(cli, ["destroy", "-d", "D1", "-p", "/api", "-s", "svc"])

    assert result.exit_code == 1
    assert "BackendNotFoundError" in result.output


def test_delete_policy_command():
    with patch("cfroute.cli.run_delete_policy") as mock_run:
        result = CliRunner().invoke(cli, ["delete-policy", "api-cache"])

    assert result.exit_code == 0, result.output
    mock_run.assert_called_once_with("api-cache", AwsConfig())


def test_delete_policy_not_found_is_fatal():
    with patch("cfroute.cli.run_delete_policy", side_effect=CachePolicyNotFoundError("x")):
        result = CliRunner().invoke(cli, ["delete-policy", "x"])

    assert result.exit_code == 1
    assert "not found" in result.output


def test_apply_reports_wrongly_typed_route_file(tmp_path):
    route_file = tmp_path / "route.json"
    route_file.write_text(
        json.dumps({"cloudFrontDistributionID": "D1", "basePath": "/api", "cachePolicyName": 5})
    )

    with patch("cfroute.cli.run_apply") as mock_run:
        result = CliRunner().invoke(cli, ["apply", "--config", str(route_file), "-s", "svc"])

    assert result.exit_code == 1
    assert "RouteValidationError" in result.output
    assert not isinstance(result.exception, AttributeError)
    mock_run.assert_not_called()
