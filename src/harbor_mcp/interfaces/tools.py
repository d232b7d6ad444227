"""Tool catalogue and dispatcher.

Maps a tool name plus its argument bag onto exactly one HarborService
method, serializes the result as text content, and translates service
errors into protocol error codes.
"""

import json
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from mcp import types
from mcp.shared.exceptions import McpError
from pydantic import BaseModel

from harbor_mcp.entities import DeleteResult
from harbor_mcp.observability.logging import AuditLogger, get_logger
from harbor_mcp.service import (
    HarborService,
    HarborServiceError,
    InvalidParameterError,
    ResourceNotFoundError,
)

logger = get_logger(__name__)


class ToolName(str, Enum):
    """Names of the tools exposed by the server."""

    LIST_PROJECTS = "list_projects"
    GET_PROJECT = "get_project"
    CREATE_PROJECT = "create_project"
    DELETE_PROJECT = "delete_project"
    LIST_REPOSITORIES = "list_repositories"
    DELETE_REPOSITORY = "delete_repository"
    LIST_TAGS = "list_tags"
    DELETE_TAG = "delete_tag"
    LIST_CHARTS = "list_charts"
    LIST_CHART_VERSIONS = "list_chart_versions"
    DELETE_CHART_VERSION = "delete_chart_version"


METADATA_SCHEMA = {
    "type": "object",
    "properties": {
        "public": {"type": "string"},
        "enable_content_trust": {"type": "string"},
        "prevent_vul": {"type": "string"},
        "severity": {"type": "string"},
        "auto_scan": {"type": "string"},
    },
}

ToolHandler = Callable[[HarborService, dict[str, Any]], Awaitable[Any]]


@dataclass(frozen=True)
class ToolSpec:
    """Declaration of one tool: schema plus the service call behind it."""

    name: ToolName
    description: str
    required: tuple[str, ...]
    handler: ToolHandler
    extra_properties: dict[str, Any] = field(default_factory=dict)

    @property
    def input_schema(self) -> dict[str, Any]:
        properties = {arg: {"type": "string"} for arg in self.required}
        properties.update(self.extra_properties)
        return {
            "type": "object",
            "properties": properties,
            "required": list(self.required),
        }

    def to_tool(self) -> types.Tool:
        return types.Tool(
            name=self.name.value,
            description=self.description,
            inputSchema=self.input_schema,
        )


TOOL_SPECS: dict[str, ToolSpec] = {
    spec.name.value: spec
    for spec in [
        ToolSpec(
            ToolName.LIST_PROJECTS,
            "List all projects in Harbor",
            (),
            lambda svc, args: svc.list_projects(),
        ),
        ToolSpec(
            ToolName.GET_PROJECT,
            "Get project details by ID or name",
            ("projectId",),
            lambda svc, args: svc.get_project(args["projectId"]),
        ),
        ToolSpec(
            ToolName.CREATE_PROJECT,
            "Create a new project in Harbor",
            ("project_name",),
            lambda svc, args: svc.create_project(args["project_name"], args.get("metadata")),
            extra_properties={"metadata": METADATA_SCHEMA},
        ),
        ToolSpec(
            ToolName.DELETE_PROJECT,
            "Delete a project by ID or name",
            ("projectId",),
            lambda svc, args: svc.delete_project(args["projectId"]),
        ),
        ToolSpec(
            ToolName.LIST_REPOSITORIES,
            "List all repositories in a project",
            ("projectId",),
            lambda svc, args: svc.list_repositories(args["projectId"]),
        ),
        ToolSpec(
            ToolName.DELETE_REPOSITORY,
            "Delete a repository",
            ("projectId", "repositoryName"),
            lambda svc, args: svc.delete_repository(args["projectId"], args["repositoryName"]),
        ),
        ToolSpec(
            ToolName.LIST_TAGS,
            "List all tags in a repository",
            ("projectId", "repositoryName"),
            lambda svc, args: svc.list_tags(args["projectId"], args["repositoryName"]),
        ),
        ToolSpec(
            ToolName.DELETE_TAG,
            "Delete a tag from a repository",
            ("projectId", "repositoryName", "tag"),
            lambda svc, args: svc.delete_tag(
                args["projectId"], args["repositoryName"], args["tag"]
            ),
        ),
        ToolSpec(
            ToolName.LIST_CHARTS,
            "List all Helm charts in a project",
            ("projectId",),
            lambda svc, args: svc.list_charts(args["projectId"]),
        ),
        ToolSpec(
            ToolName.LIST_CHART_VERSIONS,
            "List all versions of a Helm chart",
            ("projectId", "chartName"),
            lambda svc, args: svc.list_chart_versions(args["projectId"], args["chartName"]),
        ),
        ToolSpec(
            ToolName.DELETE_CHART_VERSION,
            "Delete a specific version of a Helm chart",
            ("projectId", "chartName", "version"),
            lambda svc, args: svc.delete_chart_version(
                args["projectId"], args["chartName"], args["version"]
            ),
        ),
    ]
}


def list_tools() -> list[types.Tool]:
    """Tool declarations advertised to clients."""
    return [spec.to_tool() for spec in TOOL_SPECS.values()]


def _mcp_error(code: int, message: str) -> McpError:
    return McpError(types.ErrorData(code=code, message=message))


def _to_jsonable(result: Any) -> Any:
    if isinstance(result, BaseModel):
        return result.model_dump(mode="json", exclude_none=True)
    if isinstance(result, (list, tuple)):
        return [_to_jsonable(item) for item in result]
    return result


def serialize_result(result: Any) -> str:
    """Render a service result as tool text.

    Delete confirmations become their message; everything else is
    pretty-printed JSON.
    """
    if isinstance(result, DeleteResult):
        return result.message
    return json.dumps(_to_jsonable(result), indent=2)


class ToolDispatcher:
    """Dispatches tool calls onto HarborService.

    Stateless apart from the service reference and the optional audit log.
    """

    def __init__(self, service: HarborService, audit_logger: Optional[AuditLogger] = None):
        self.service = service
        self.audit_logger = audit_logger

    async def dispatch(
        self, name: str, arguments: Optional[dict[str, Any]] = None
    ) -> list[types.TextContent]:
        """Invoke the tool called ``name``.

        Args:
            name: Tool name
            arguments: Tool arguments (may be None)

        Returns:
            A single text content block

        Raises:
            McpError: METHOD_NOT_FOUND for unknown tools or missing resources,
                INVALID_PARAMS for missing arguments, INTERNAL_ERROR otherwise
        """
        arguments = arguments or {}
        started = time.perf_counter()
        error: Optional[str] = None

        try:
            text = await self._call(name, arguments)
            return [types.TextContent(type="text", text=text)]
        except McpError as e:
            error = e.error.message
            raise
        finally:
            duration_ms = int((time.perf_counter() - started) * 1000)
            if error is None:
                logger.info("tool_call_completed", tool=name, duration_ms=duration_ms)
            else:
                logger.warning("tool_call_failed", tool=name, duration_ms=duration_ms, error=error)
            if self.audit_logger is not None:
                self.audit_logger.record(
                    tool=name,
                    arguments=arguments,
                    success=error is None,
                    duration_ms=duration_ms,
                    error=error,
                )

    async def _call(self, name: str, arguments: dict[str, Any]) -> str:
        spec = TOOL_SPECS.get(name)
        if spec is None:
            raise _mcp_error(types.METHOD_NOT_FOUND, f"Unknown tool: {name}")

        for arg in spec.required:
            value = arguments.get(arg)
            if not isinstance(value, str) or not value.strip():
                raise _mcp_error(types.INVALID_PARAMS, f"{arg} is required")

        metadata = arguments.get("metadata")
        if metadata is not None and not isinstance(metadata, dict):
            raise _mcp_error(types.INVALID_PARAMS, "metadata must be an object")

        try:
            result = await spec.handler(self.service, arguments)
        except InvalidParameterError as e:
            raise _mcp_error(types.INVALID_PARAMS, e.message) from e
        except ResourceNotFoundError as e:
            raise _mcp_error(types.METHOD_NOT_FOUND, e.message) from e
        except HarborServiceError as e:
            raise _mcp_error(types.INTERNAL_ERROR, e.message) from e
        except Exception as e:
            logger.exception("tool_call_unexpected_error", tool=name)
            raise _mcp_error(types.INTERNAL_ERROR, str(e) or "Unknown error occurred") from e

        return serialize_result(result)
