"""Unit tests for the tool catalogue and ToolDispatcher."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from mcp import types
from mcp.shared.exceptions import McpError

from harbor_mcp.entities import Artifact, ArtifactTag, DeleteResult, Project
from harbor_mcp.interfaces.tools import (
    TOOL_SPECS,
    ToolDispatcher,
    ToolName,
    list_tools,
    serialize_result,
)
from harbor_mcp.observability.logging import AuditLogger
from harbor_mcp.service import (
    HarborService,
    HarborServiceError,
    InvalidParameterError,
    ResourceNotFoundError,
)


@pytest.fixture
def service():
    return AsyncMock(spec=HarborService)


@pytest.fixture
def dispatcher(service):
    return ToolDispatcher(service)


class TestToolCatalogue:
    """Test the declared tool list."""

    def test_all_tools_declared(self):
        names = [tool.name for tool in list_tools()]

        assert names == [name.value for name in ToolName]
        assert len(names) == 11

    def test_required_arguments(self):
        tools = {tool.name: tool for tool in list_tools()}

        assert tools["list_projects"].inputSchema["required"] == []
        assert tools["get_project"].inputSchema["required"] == ["projectId"]
        assert tools["delete_tag"].inputSchema["required"] == ["projectId", "repositoryName", "tag"]
        assert tools["delete_chart_version"].inputSchema["required"] == [
            "projectId",
            "chartName",
            "version",
        ]

    def test_create_project_schema_has_metadata(self):
        schema = TOOL_SPECS["create_project"].input_schema

        assert schema["required"] == ["project_name"]
        assert schema["properties"]["metadata"]["type"] == "object"
        assert "public" in schema["properties"]["metadata"]["properties"]

    def test_every_tool_has_description(self):
        for tool in list_tools():
            assert tool.description


class TestSerializeResult:
    def test_delete_result_is_message(self):
        assert serialize_result(DeleteResult(message="Tag v1 deleted successfully")) == (
            "Tag v1 deleted successfully"
        )

    def test_models_are_pretty_json(self):
        text = serialize_result([Project(name="library", project_id=1)])

        assert json.loads(text) == [{"name": "library", "project_id": 1}]
        assert "\n  " in text

    def test_empty_list(self):
        assert json.loads(serialize_result([])) == []


@pytest.mark.asyncio
class TestToolDispatcher:
    """Test dispatching, argument checks and error mapping."""

    async def test_list_projects(self, dispatcher, service):
        service.list_projects.return_value = [Project(name="library", project_id=1)]

        content = await dispatcher.dispatch("list_projects", {})

        assert len(content) == 1
        assert content[0].type == "text"
        assert json.loads(content[0].text) == [{"name": "library", "project_id": 1}]
        service.list_projects.assert_awaited_once_with()

    async def test_none_arguments_treated_as_empty(self, dispatcher, service):
        service.list_projects.return_value = []

        content = await dispatcher.dispatch("list_projects", None)

        assert json.loads(content[0].text) == []

    async def test_list_tags_keeps_tag_metadata(self, dispatcher, service):
        service.list_tags.return_value = [
            Artifact(
                digest="sha256:abc",
                tags=[ArtifactTag(name="v1.0"), ArtifactTag(name="latest")],
            )
        ]

        content = await dispatcher.dispatch(
            "list_tags", {"projectId": "library", "repositoryName": "nginx"}
        )

        payload = json.loads(content[0].text)
        assert [t["name"] for t in payload[0]["tags"]] == ["v1.0", "latest"]
        service.list_tags.assert_awaited_once_with("library", "nginx")

    async def test_delete_returns_message(self, dispatcher, service):
        service.delete_tag.return_value = DeleteResult(message="Tag latest deleted successfully")

        content = await dispatcher.dispatch(
            "delete_tag", {"projectId": "1", "repositoryName": "nginx", "tag": "latest"}
        )

        assert content[0].text == "Tag latest deleted successfully"
        service.delete_tag.assert_awaited_once_with("1", "nginx", "latest")

    async def test_create_project_passes_metadata(self, dispatcher, service):
        service.create_project.return_value = Project(name="new", project_id=5)

        await dispatcher.dispatch(
            "create_project", {"project_name": "new", "metadata": {"public": "true"}}
        )

        service.create_project.assert_awaited_once_with("new", {"public": "true"})

    async def test_chart_version_tool(self, dispatcher, service):
        service.delete_chart_version.return_value = DeleteResult(
            message="Chart nginx version 1.0.0 deleted successfully"
        )

        content = await dispatcher.dispatch(
            "delete_chart_version",
            {"projectId": "library", "chartName": "nginx", "version": "1.0.0"},
        )

        assert content[0].text == "Chart nginx version 1.0.0 deleted successfully"

    async def test_unknown_tool(self, dispatcher):
        with pytest.raises(McpError) as exc_info:
            await dispatcher.dispatch("unknown_tool", {})

        assert exc_info.value.error.code == types.METHOD_NOT_FOUND
        assert exc_info.value.error.message == "Unknown tool: unknown_tool"

    @pytest.mark.parametrize(
        "name,arguments,missing",
        [
            ("get_project", {}, "projectId"),
            ("get_project", {"projectId": ""}, "projectId"),
            ("delete_repository", {"projectId": "1"}, "repositoryName"),
            ("delete_tag", {"projectId": "1", "repositoryName": "nginx"}, "tag"),
            ("create_project", {"project_name": "   "}, "project_name"),
            ("list_chart_versions", {"projectId": "1", "chartName": 3}, "chartName"),
        ],
    )
    async def test_missing_argument(self, dispatcher, service, name, arguments, missing):
        with pytest.raises(McpError) as exc_info:
            await dispatcher.dispatch(name, arguments)

        assert exc_info.value.error.code == types.INVALID_PARAMS
        assert exc_info.value.error.message == f"{missing} is required"
        assert not service.method_calls

    async def test_metadata_must_be_object(self, dispatcher, service):
        with pytest.raises(McpError) as exc_info:
            await dispatcher.dispatch("create_project", {"project_name": "new", "metadata": "x"})

        assert exc_info.value.error.code == types.INVALID_PARAMS
        service.create_project.assert_not_awaited()

    async def test_invalid_parameter_maps_to_invalid_params(self, dispatcher, service):
        service.get_project.side_effect = InvalidParameterError("projectId is required")

        with pytest.raises(McpError) as exc_info:
            await dispatcher.dispatch("get_project", {"projectId": "1"})

        assert exc_info.value.error.code == types.INVALID_PARAMS

    async def test_not_found_maps_to_method_not_found(self, dispatcher, service):
        service.delete_tag.side_effect = ResourceNotFoundError(
            "Tag v9 not found in repository nginx"
        )

        with pytest.raises(McpError) as exc_info:
            await dispatcher.dispatch(
                "delete_tag", {"projectId": "1", "repositoryName": "nginx", "tag": "v9"}
            )

        assert exc_info.value.error.code == types.METHOD_NOT_FOUND
        assert exc_info.value.error.message == "Tag v9 not found in repository nginx"

    async def test_service_error_maps_to_internal_error(self, dispatcher, service):
        service.list_projects.side_effect = HarborServiceError(
            "Failed to get projects: Harbor API error: 500 - boom"
        )

        with pytest.raises(McpError) as exc_info:
            await dispatcher.dispatch("list_projects", {})

        assert exc_info.value.error.code == types.INTERNAL_ERROR
        assert exc_info.value.error.message.startswith("Failed to get projects")

    async def test_unexpected_error_maps_to_internal_error(self, dispatcher, service):
        service.list_charts.side_effect = RuntimeError("kaboom")

        with pytest.raises(McpError) as exc_info:
            await dispatcher.dispatch("list_charts", {"projectId": "1"})

        assert exc_info.value.error.code == types.INTERNAL_ERROR
        assert exc_info.value.error.message == "kaboom"


@pytest.mark.asyncio
class TestDispatcherAudit:
    """Test that calls are recorded in the audit log."""

    async def test_success_is_recorded(self, service):
        audit = MagicMock(spec=AuditLogger)
        dispatcher = ToolDispatcher(service, audit)
        service.list_projects.return_value = []

        await dispatcher.dispatch("list_projects", {})

        audit.record.assert_called_once()
        kwargs = audit.record.call_args.kwargs
        assert kwargs["tool"] == "list_projects"
        assert kwargs["success"] is True
        assert kwargs["error"] is None
        assert kwargs["duration_ms"] >= 0

    async def test_failure_is_recorded(self, service):
        audit = MagicMock(spec=AuditLogger)
        dispatcher = ToolDispatcher(service, audit)

        with pytest.raises(McpError):
            await dispatcher.dispatch("get_project", {})

        kwargs = audit.record.call_args.kwargs
        assert kwargs["tool"] == "get_project"
        assert kwargs["success"] is False
        assert kwargs["error"] == "projectId is required"
