"""FastAPI application exposing the AIXBT tools through a JSON-RPC gateway."""

from __future__ import annotations

import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from aixbt_mcp.aixbt_api import AixbtApiClient
from aixbt_mcp.config import SERVER_NAME, SERVER_VERSION, AixbtConfig, load_config, load_env_file
from aixbt_mcp.logging_config import configure_logging
from aixbt_mcp.mcp import ToolCallError, ToolRegistry, build_registry

logger = logging.getLogger(__name__)

HEALTH_STATUS = {"status": "ok"}


def _jsonrpc_success_payload(rpc_id: Any, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": rpc_id, "result": result}


def _jsonrpc_error_payload(rpc_id: Any, code: int, message: str, data: Optional[str] = None) -> Dict[str, Any]:
    error: Dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": "2.0", "id": rpc_id, "error": error}


def create_app(
    config: Optional[AixbtConfig] = None,
    *,
    registry: Optional[ToolRegistry] = None,
) -> FastAPI:
    """
    Build the gateway app.

    With no arguments the configuration is read from the environment and a
    fresh API client is owned (and closed) by the app. Run with:
    ``uvicorn --factory aixbt_mcp.server:create_app``.
    """
    client: Optional[AixbtApiClient] = None
    if registry is None:
        if config is None:
            load_env_file()
            config = load_config()
            configure_logging(config.log_level, config.log_format)
        client = AixbtApiClient(config)
        registry = build_registry(client, config.profile)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        if client is not None:
            await client.aclose()

    app = FastAPI(
        title=SERVER_NAME,
        description="Read-only AIXBT tool surface for LLM agents.",
        version=SERVER_VERSION,
        lifespan=lifespan,
    )
    app.state.registry = registry

    @app.middleware("http")
    async def add_request_context(request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    @app.get("/health")
    async def health() -> JSONResponse:
        """Lightweight health endpoint for monitoring."""
        return JSONResponse(content=HEALTH_STATUS)

    @app.post("/mcp")
    async def mcp_gateway(request: Request) -> Response:
        """
        Minimal JSON-RPC gateway for MCP-style integrations.

        Supported methods:
          - initialize
          - tools/list (alias list_tools)
          - tools/call (alias call_tool)
          - notifications/initialized
        """
        request_id = getattr(request.state, "request_id", None)
        start_time = time.time()

        def _respond(
            payload: Dict[str, Any],
            status_code: int = 200,
            *,
            outcome: str,
            method_label: Optional[str] = None,
            tool_label: Optional[str] = None,
        ) -> JSONResponse:
            duration_ms = (time.time() - start_time) * 1000
            logger.debug(
                "mcp outcome=%s method=%s tool=%s id=%s status=%s duration_ms=%.2f request_id=%s",
                outcome,
                method_label,
                tool_label,
                payload.get("id"),
                status_code,
                duration_ms,
                request_id,
            )
            return JSONResponse(status_code=status_code, content=payload)

        try:
            body = await request.json()
        except ValueError:
            payload = _jsonrpc_error_payload(None, -32700, "Parse error")
            return _respond(payload, status_code=400, outcome="error")

        if not isinstance(body, dict):
            payload = _jsonrpc_error_payload(None, -32600, "Invalid request")
            return _respond(payload, status_code=400, outcome="error")

        method = body.get("method")
        rpc_id = body.get("id")
        raw_params = body.get("params")
        if raw_params is None:
            params: Dict[str, Any] = {}
        elif isinstance(raw_params, dict):
            params = raw_params
        else:
            payload = _jsonrpc_error_payload(rpc_id, -32602, "Invalid params")
            return _respond(payload, outcome="error", method_label=method)

        if not method:
            payload = _jsonrpc_error_payload(rpc_id, -32600, "Invalid request")
            return _respond(payload, outcome="error")

        if method == "initialize":
            protocol_version = params.get("protocolVersion")
            if not isinstance(protocol_version, str) or not protocol_version:
                payload = _jsonrpc_error_payload(rpc_id, -32602, "Invalid params")
                return _respond(payload, outcome="error", method_label=method)
            result = {
                "protocolVersion": protocol_version,
                "serverInfo": {"name": SERVER_NAME, "version": SERVER_VERSION},
                "capabilities": {"tools": {"listChanged": False}},
            }
            return _respond(_jsonrpc_success_payload(rpc_id, result), outcome="success", method_label=method)

        if method in ("list_tools", "tools/list"):
            result = {"tools": registry.list_tools()}
            return _respond(_jsonrpc_success_payload(rpc_id, result), outcome="success", method_label=method)

        if method in ("call_tool", "tools/call"):
            tool_name = params.get("name") or params.get("tool")
            arguments = params.get("arguments")
            if arguments is None:
                arguments = params.get("params") or {}
            if not isinstance(tool_name, str) or not tool_name.strip() or not isinstance(arguments, dict):
                payload = _jsonrpc_error_payload(rpc_id, -32602, "Invalid params")
                return _respond(payload, outcome="error", method_label=method)
            try:
                tool_result = await registry.call_tool(tool_name, arguments)
            except ToolCallError as exc:
                logger.warning("Rejected call to %s: %s", tool_name, exc, extra={"tool": tool_name})
                payload = _jsonrpc_error_payload(rpc_id, -32602, "Invalid params", data=str(exc))
                return _respond(payload, outcome="error", method_label=method, tool_label=tool_name)
            return _respond(
                _jsonrpc_success_payload(rpc_id, tool_result.to_dict()),
                outcome="error" if tool_result.is_error else "success",
                method_label=method,
                tool_label=tool_name,
            )

        if method in ("notifications/initialized", "initialized"):
            # Notifications get no JSON-RPC response body.
            return Response(status_code=204)

        payload = _jsonrpc_error_payload(rpc_id, -32601, "Method not found")
        return _respond(payload, outcome="error", method_label=method)

    return app
