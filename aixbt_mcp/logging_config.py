"""Diagnostic logging setup. Everything goes to stderr; stdout carries MCP frames."""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, Optional

PLAIN_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
TRACE_BODY_LIMIT = 200


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "message": record.getMessage(),
            "name": record.name,
        }
        for key in ("tool", "error"):
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def configure_logging(level: str = "INFO", log_format: str = "plain") -> logging.Handler:
    """
    Install a single stderr handler on the root logger.

    Calling this again replaces the previous handler, so tests and the HTTP
    gateway can reconfigure freely.
    """
    handler = logging.StreamHandler(sys.stderr)
    if log_format.lower() == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT))
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        handlers=[handler],
        force=True,
    )
    return handler


def truncate_body(data: Any, limit: int = TRACE_BODY_LIMIT) -> str:
    """Render a response body for trace logs, cut to ``limit`` characters."""
    try:
        rendered = json.dumps(data, ensure_ascii=False)
    except (TypeError, ValueError):
        rendered = str(data)
    return rendered[:limit] + "..."


def log_request(logger: logging.Logger, method: str, url: str, params: Optional[dict] = None) -> None:
    if params:
        logger.info("[REQUEST] %s %s params: %s", method, url, json.dumps(params))
    else:
        logger.info("[REQUEST] %s %s", method, url)


def log_response(logger: logging.Logger, status: int, url: str, data: Any) -> None:
    logger.info("[RESPONSE] %s %s data: %s", status, url, truncate_body(data))
