"""Shared argument bounds and normalization for AIXBT MCP tools."""

from __future__ import annotations

from typing import Any, Dict

LIMIT_MIN = 1
LIMIT_MAX = 50
NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50

# Upstream ``limit`` used when looking a single project up by ticker.
PROJECT_LOOKUP_LIMIT = 1


def limit_schema(description: str) -> Dict[str, Any]:
    return {
        "type": "integer",
        "minimum": LIMIT_MIN,
        "maximum": LIMIT_MAX,
        "description": description,
    }


def name_schema(description: str) -> Dict[str, Any]:
    return {
        "type": "string",
        "minLength": NAME_MIN_LENGTH,
        "maxLength": NAME_MAX_LENGTH,
        "description": description,
    }


def normalize_ticker(name: str) -> str:
    """Upstream tickers are matched in lowercase."""
    return name.lower()
