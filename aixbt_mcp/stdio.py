"""
Stdio MCP entry point.

Startup walks a fixed sequence of states; a missing credential or a transport
that cannot be attached aborts the process with exit code 1. Once serving, the
process runs until the host closes stdin.
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from aixbt_mcp.aixbt_api import AixbtApiClient
from aixbt_mcp.config import (
    DEFAULT_LOG_FORMAT,
    DEFAULT_LOG_LEVEL,
    LOG_FORMAT_ENV_VAR,
    LOG_LEVEL_ENV_VAR,
    SERVER_NAME,
    SERVER_VERSION,
    AixbtConfig,
    ConfigurationError,
    load_config,
    load_env_file,
)
from aixbt_mcp.logging_config import configure_logging
from aixbt_mcp.mcp import ToolCallError, ToolRegistry, build_registry

logger = logging.getLogger(__name__)

EXIT_FAILURE = 1


class StartupState(str, Enum):
    UNINITIALIZED = "uninitialized"
    CREDENTIAL_CHECKED = "credential_checked"
    SERVER_CONSTRUCTED = "server_constructed"
    TOOLS_REGISTERED = "tools_registered"
    TRANSPORT_CONNECTED = "transport_connected"
    SERVING = "serving"
    ABORTED = "aborted"


def build_tool_list(registry: ToolRegistry) -> List[types.Tool]:
    return [
        types.Tool(
            name=entry["name"],
            description=entry.get("description"),
            inputSchema=entry["inputSchema"],
        )
        for entry in registry.list_tools()
    ]


async def handle_call_tool(
    registry: ToolRegistry, name: str, arguments: Optional[Dict[str, Any]]
) -> types.CallToolResult:
    """
    Run one tool and convert its result for the SDK.

    Separated from the decorated handler so tests can call it directly.
    Rejected calls re-raise; the SDK turns them into an error result.
    """
    try:
        result = await registry.call_tool(name, arguments or {})
    except ToolCallError as exc:
        logger.warning("Rejected call to %s: %s", name, exc, extra={"tool": name})
        raise
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=result.text)],
        isError=result.is_error,
    )


def bind_registry(server: Server, registry: ToolRegistry) -> None:
    @server.list_tools()
    async def _list_tools() -> List[types.Tool]:
        return build_tool_list(registry)

    @server.call_tool()
    async def _call_tool(name: str, arguments: Dict[str, Any]) -> types.CallToolResult:
        return await handle_call_tool(registry, name, arguments)


class StdioServerRunner:
    """Drives startup from credential check to serving over stdio."""

    def __init__(
        self,
        *,
        config_loader: Callable[[], AixbtConfig] = load_config,
        transport_factory: Callable[[], Any] = stdio_server,
    ) -> None:
        self.state = StartupState.UNINITIALIZED
        self.config: Optional[AixbtConfig] = None
        self.server: Optional[Server] = None
        self.client: Optional[AixbtApiClient] = None
        self.registry: Optional[ToolRegistry] = None
        self._config_loader = config_loader
        self._transport_factory = transport_factory

    def _transition(self, state: StartupState) -> None:
        logger.debug("startup state %s -> %s", self.state.value, state.value)
        self.state = state

    def check_credentials(self) -> AixbtConfig:
        try:
            config = self._config_loader()
        except ConfigurationError as exc:
            logger.error("%s", exc)
            self._transition(StartupState.ABORTED)
            raise
        logger.info("API key found in environment variables")
        self.config = config
        self._transition(StartupState.CREDENTIAL_CHECKED)
        return config

    def construct_server(self) -> Server:
        self.server = Server(SERVER_NAME, version=SERVER_VERSION)
        logger.info("MCP server instance created (profile=%s)", self.config.profile.name)
        self._transition(StartupState.SERVER_CONSTRUCTED)
        return self.server

    def register_tools(self) -> ToolRegistry:
        self.client = AixbtApiClient(self.config)
        logger.info("HTTP client configured with API key")
        self.registry = build_registry(self.client, self.config.profile)
        bind_registry(self.server, self.registry)
        self._transition(StartupState.TOOLS_REGISTERED)
        return self.registry

    async def serve(self) -> int:
        try:
            logger.info("Initializing stdio transport")
            async with self._transport_factory() as (read_stream, write_stream):
                self._transition(StartupState.TRANSPORT_CONNECTED)
                logger.info("Server connected successfully and ready to process requests")
                self._transition(StartupState.SERVING)
                await self.server.run(
                    read_stream,
                    write_stream,
                    self.server.create_initialization_options(),
                )
        except Exception:
            if self.state == StartupState.SERVING:
                logger.exception("Server stopped unexpectedly")
            else:
                logger.exception("Failed to start server")
            self._transition(StartupState.ABORTED)
            return EXIT_FAILURE
        finally:
            if self.client is not None:
                await self.client.aclose()
        logger.info("Transport closed, shutting down")
        return 0

    async def run(self) -> int:
        logger.info("Starting AIXBT MCP server initialization")
        try:
            self.check_credentials()
        except ConfigurationError:
            return EXIT_FAILURE
        self.construct_server()
        self.register_tools()
        return await self.serve()


def main() -> None:
    """Console entry point: configure logging, then run until the host disconnects."""
    load_env_file()
    configure_logging(
        os.getenv(LOG_LEVEL_ENV_VAR, DEFAULT_LOG_LEVEL),
        os.getenv(LOG_FORMAT_ENV_VAR, DEFAULT_LOG_FORMAT),
    )
    exit_code = asyncio.run(StdioServerRunner().run())
    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
