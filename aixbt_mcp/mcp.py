"""
Tool registry shared by the stdio and HTTP transports.

Maps MCP tool names to handlers bound to one API client and one deployment
profile. Arguments are validated against each tool's JSON schema before the
handler runs; handlers themselves never raise.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

import jsonschema

from aixbt_mcp.aixbt_api import AixbtApiClient
from aixbt_mcp.config import DeploymentProfile
from aixbt_mcp.tools import ToolResult, list_project_latest_summaries, list_top_projects
from aixbt_mcp.tools.validators import limit_schema, name_schema

logger = logging.getLogger(__name__)

TOP_PROJECTS_TOOL = "list-top-projects"
PROJECT_SUMMARIES_TOOL = "list-project-latest-summaries"

ToolHandler = Callable[..., Awaitable[ToolResult]]


class ToolCallError(Exception):
    """Base class for calls rejected before a handler runs."""


class UnknownToolError(ToolCallError):
    def __init__(self, tool_name: str) -> None:
        super().__init__(f"Unknown tool: {tool_name}")
        self.tool_name = tool_name


class ToolArgumentError(ToolCallError):
    """Raised when arguments violate the tool's input schema."""


@dataclass(frozen=True, slots=True)
class ToolDefinition:
    name: str
    description: Optional[str]
    input_schema: Dict[str, Any]
    handler: ToolHandler

    def describe(self) -> Dict[str, Any]:
        entry: Dict[str, Any] = {"name": self.name}
        if self.description:
            entry["description"] = self.description
        entry["inputSchema"] = self.input_schema
        return entry


class ToolRegistry:
    """Ordered collection of tools with schema-checked dispatch."""

    def __init__(self) -> None:
        self._tools: Dict[str, ToolDefinition] = {}

    def register(self, tool: ToolDefinition) -> None:
        jsonschema.Draft202012Validator.check_schema(tool.input_schema)
        self._tools[tool.name] = tool
        logger.info("Registered tool: %s", tool.name)

    def __contains__(self, tool_name: object) -> bool:
        return tool_name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def get(self, tool_name: str) -> ToolDefinition:
        tool = self._tools.get(tool_name)
        if tool is None:
            raise UnknownToolError(tool_name)
        return tool

    def list_tools(self) -> List[Dict[str, Any]]:
        """Return tool metadata in registration order."""
        return [tool.describe() for tool in self._tools.values()]

    def validate_arguments(self, tool: ToolDefinition, arguments: Dict[str, Any]) -> Dict[str, Any]:
        try:
            jsonschema.validate(
                instance=arguments,
                schema=tool.input_schema,
                cls=jsonschema.Draft202012Validator,
            )
        except jsonschema.ValidationError as exc:
            raise ToolArgumentError(f"Invalid arguments for tool {tool.name}: {exc.message}") from exc
        # Undeclared keys are dropped rather than forwarded to the handler.
        declared = tool.input_schema.get("properties", {})
        accepted: Dict[str, Any] = {}
        for key, value in arguments.items():
            if key not in declared:
                continue
            # JSON Schema treats 2.0 as an integer; handlers slice with it.
            if declared[key].get("type") == "integer" and isinstance(value, float):
                value = int(value)
            accepted[key] = value
        return accepted

    async def call_tool(self, tool_name: str, arguments: Optional[Dict[str, Any]] = None) -> ToolResult:
        """
        Validate and dispatch one tool invocation.

        Raises:
            UnknownToolError: no tool is registered under ``tool_name``.
            ToolArgumentError: ``arguments`` violate the input schema.
        """
        tool = self.get(tool_name)
        accepted = self.validate_arguments(tool, arguments or {})
        logger.info(
            "Executing tool: %s with %s",
            tool_name,
            ", ".join(f"{key}={value}" for key, value in accepted.items()),
            extra={"tool": tool_name},
        )
        result = await tool.handler(**accepted)
        if result.is_error:
            logger.warning("tool=%s outcome=error", tool_name, extra={"tool": tool_name})
        else:
            logger.debug("tool=%s outcome=success", tool_name, extra={"tool": tool_name})
        return result


def build_registry(client: AixbtApiClient, profile: DeploymentProfile) -> ToolRegistry:
    """Register every project tool against ``client`` using ``profile``'s output shape."""
    registry = ToolRegistry()
    registry.register(
        ToolDefinition(
            name=PROJECT_SUMMARIES_TOOL,
            description=(
                "Return the latest summaries for a project looked up by ticker or name."
                if profile.describe_tools
                else None
            ),
            input_schema={
                "type": "object",
                "properties": {
                    "name": name_schema("Project or token name (i.e. ETH)"),
                    "limit": limit_schema("Maximum number of summaries"),
                },
                "required": ["name", "limit"],
            },
            handler=functools.partial(list_project_latest_summaries, client=client),
        )
    )
    registry.register(
        ToolDefinition(
            name=TOP_PROJECTS_TOOL,
            description=(
                "List the top ranked projects with the rationale for their ranking."
                if profile.describe_tools
                else None
            ),
            input_schema={
                "type": "object",
                "properties": {
                    "limit": limit_schema("Maximum number of projects"),
                },
                "required": ["limit"],
            },
            handler=functools.partial(
                list_top_projects, client=client, include_score=profile.include_score
            ),
        )
    )
    return registry
