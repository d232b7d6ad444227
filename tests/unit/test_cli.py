"""Tests for the command-line interface."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import typer
from mcp import types
from mcp.shared.exceptions import McpError
from typer.testing import CliRunner

from harbor_mcp.config.schema import AppConfig
from harbor_mcp.entities import Project
from harbor_mcp.interfaces.cli import _parse_arguments, app

runner = CliRunner()


@pytest.fixture
def config():
    return AppConfig(url="https://harbor.example.com", username="admin", password="secret")


@pytest.fixture
def harbor_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HARBOR_URL", "https://harbor.example.com")
    monkeypatch.setenv("HARBOR_USERNAME", "admin")
    monkeypatch.setenv("HARBOR_PASSWORD", "secret")


def make_dispatcher(text="[]", error=None):
    dispatcher = MagicMock()
    if error is not None:
        dispatcher.dispatch = AsyncMock(side_effect=error)
    else:
        dispatcher.dispatch = AsyncMock(return_value=[types.TextContent(type="text", text=text)])
    client = AsyncMock()
    return dispatcher, client


class TestParseArguments:
    def test_key_value_pairs(self):
        assert _parse_arguments(["projectId=1", "tag=v1=rc"], None) == {
            "projectId": "1",
            "tag": "v1=rc",
        }

    def test_metadata_json(self):
        arguments = _parse_arguments(["project_name=new"], '{"public": "true"}')

        assert arguments == {"project_name": "new", "metadata": {"public": "true"}}

    def test_invalid_pair(self):
        with pytest.raises(typer.Exit):
            _parse_arguments(["projectId"], None)

    def test_invalid_metadata(self):
        with pytest.raises(typer.Exit):
            _parse_arguments([], "{not json")


def test_tools_command():
    result = runner.invoke(app, ["tools"])

    assert result.exit_code == 0
    assert "list_projects" in result.output


def test_call_command_prints_result(config):
    dispatcher, client = make_dispatcher(text='[\n  {"name": "library"}\n]')

    with patch("harbor_mcp.interfaces.cli._load_config", return_value=config), patch(
        "harbor_mcp.interfaces.cli._build_dispatcher", return_value=(dispatcher, client)
    ):
        result = runner.invoke(
            app,
            ["call", "create_project", "--arg", "project_name=new", "--metadata", '{"public": "true"}'],
        )

    assert result.exit_code == 0
    assert '"name": "library"' in result.output
    dispatcher.dispatch.assert_awaited_once_with(
        "create_project", {"project_name": "new", "metadata": {"public": "true"}}
    )
    client.close.assert_awaited_once()


def test_call_command_reports_tool_error(config):
    error = McpError(types.ErrorData(code=types.INVALID_PARAMS, message="projectId is required"))
    dispatcher, client = make_dispatcher(error=error)

    with patch("harbor_mcp.interfaces.cli._load_config", return_value=config), patch(
        "harbor_mcp.interfaces.cli._build_dispatcher", return_value=(dispatcher, client)
    ):
        result = runner.invoke(app, ["call", "get_project"])

    assert result.exit_code == 1
    client.close.assert_awaited_once()


def test_check_command(config):
    with patch("harbor_mcp.interfaces.cli._load_config", return_value=config), patch(
        "harbor_mcp.interfaces.cli.create_registry_client"
    ) as create_client, patch("harbor_mcp.interfaces.cli.HarborService") as service_cls:
        create_client.return_value = AsyncMock()
        service_cls.return_value.list_projects = AsyncMock(
            return_value=[Project(name="library", project_id=1)]
        )
        result = runner.invoke(app, ["check"])

    assert result.exit_code == 0
    assert "1 project(s) visible" in result.output


def test_info_masks_password(harbor_env):
    result = runner.invoke(app, ["info"])

    assert result.exit_code == 0
    assert "https://harbor.example.com" in result.output
    assert "secret" not in result.output


def test_missing_configuration_exits(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for var in ["HARBOR_URL", "HARBOR_USERNAME", "HARBOR_PASSWORD"]:
        monkeypatch.setenv(var, "")
        monkeypatch.delenv(var)

    result = runner.invoke(app, ["info"])

    assert result.exit_code == 1
