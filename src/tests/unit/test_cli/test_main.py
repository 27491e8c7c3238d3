"""Tests for the main CLI module."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner

from knotty_mcp import __version__
from knotty_mcp.main import CLIError, cli, load_settings

ANALYSIS = {
    "success": True,
    "data": {
        "api_info": {"title": "Test API", "version": "1.0.0", "total_endpoints": 5},
        "scraped_from_ui": False,
    },
    "metadata": {"remaining_requests": 59},
}


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in ("OPENAPI_SPEC_URL", "SWAGGER_AUTH_TOKEN", "CACHE_REFRESH_MINUTES", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


class TestCLI:
    """Test the main CLI functionality."""

    def setup_method(self):
        self.runner = CliRunner()

    def test_cli_help(self):
        result = self.runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "serve" in result.output
        assert "analyze" in result.output

    def test_cli_version(self):
        result = self.runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "knotty-mcp" in result.output
        assert __version__ in result.output

    def test_serve_passes_overrides(self):
        with patch("knotty_mcp.main.KnottyMcpServer") as server_class:
            server_class.return_value.run = AsyncMock()

            result = self.runner.invoke(
                cli,
                [
                    "--log-level", "ERROR", "serve",
                    "--spec-url", "https://api.example.com/openapi.json",
                    "--auth-token", "secret",
                    "--cache-minutes", "5",
                ],
            )

        assert result.exit_code == 0, result.output
        settings = server_class.call_args.args[0]
        assert settings.openapi_spec_url == "https://api.example.com/openapi.json"
        assert settings.swagger_auth_token == "secret"
        assert settings.cache.refresh_minutes == 5
        server_class.return_value.run.assert_awaited_once()

    def test_serve_rejects_invalid_spec_url(self):
        with patch("knotty_mcp.main.KnottyMcpServer") as server_class:
            result = self.runner.invoke(
                cli, ["--log-level", "ERROR", "serve", "--spec-url", "not-a-url"]
            )

        assert result.exit_code == 1
        assert "Configuration validation failed" in result.output
        server_class.assert_not_called()

    def test_serve_rejects_zero_cache_minutes(self):
        result = self.runner.invoke(cli, ["serve", "--cache-minutes", "0"])

        assert result.exit_code != 0

    def test_analyze_json_output(self):
        with patch("knotty_mcp.main._analyze", new=AsyncMock(return_value=ANALYSIS)) as analyze:
            result = self.runner.invoke(
                cli,
                [
                    "--log-level", "ERROR", "analyze",
                    "https://api.example.com/openapi.json",
                    "--query", "users",
                    "--max-results", "3",
                ],
            )

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == ANALYSIS["data"]
        args = analyze.await_args.args
        assert args[1:] == ("https://api.example.com/openapi.json", None, "users", 3)

    def test_analyze_yaml_output(self):
        with patch("knotty_mcp.main._analyze", new=AsyncMock(return_value=ANALYSIS)):
            result = self.runner.invoke(
                cli,
                ["--log-level", "ERROR", "analyze", "https://x.test/spec", "--format", "yaml"],
            )

        assert result.exit_code == 0, result.output
        assert "title: Test API" in result.output

    def test_analyze_failure_exits_non_zero(self):
        failure = {
            "success": False,
            "error": "Authentication required: HTTP 401",
            "error_type": "auth_error",
            "suggestion": "Pass --auth-token",
        }
        with patch("knotty_mcp.main._analyze", new=AsyncMock(return_value=failure)):
            result = self.runner.invoke(
                cli, ["--log-level", "ERROR", "analyze", "https://x.test/spec"]
            )

        assert result.exit_code == 1
        assert "Error: Authentication required: HTTP 401" in result.output
        assert "Suggestion: Pass --auth-token" in result.output

    def test_analyze_invalid_url(self):
        result = self.runner.invoke(cli, ["--log-level", "ERROR", "analyze", "example.com"])

        assert result.exit_code == 1
        assert "Invalid URL format" in result.output

    def test_analyze_max_results_range(self):
        result = self.runner.invoke(
            cli, ["analyze", "https://x.test/spec", "--max-results", "51"]
        )

        assert result.exit_code != 0


class TestLoadSettings:
    def test_none_overrides_ignored(self):
        settings = load_settings(openapi_spec_url=None, swagger_auth_token=None)

        assert settings.openapi_spec_url is None

    def test_invalid_configuration(self):
        with pytest.raises(CLIError) as exc_info:
            load_settings(openapi_spec_url="ftp://example.com")

        assert "openapi_spec_url" in exc_info.value.message
        assert exc_info.value.suggestion


class TestCLIError:
    def test_cli_error_with_suggestion(self):
        error = CLIError("Something failed", "Try again")

        assert str(error) == "Something failed"
        assert error.suggestion == "Try again"

    def test_unexpected_error_hint(self):
        runner = CliRunner()
        with patch("knotty_mcp.main.load_settings", MagicMock(side_effect=RuntimeError("boom"))):
            result = runner.invoke(cli, ["--log-level", "ERROR", "analyze", "https://x.test"])

        assert result.exit_code == 1
        assert "Unexpected error: boom" in result.output
        assert "--verbose" in result.output
