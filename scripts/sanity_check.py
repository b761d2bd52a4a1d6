"""Minimal sanity checks for the AIXBT MCP tools against the live API."""

from __future__ import annotations

import asyncio
import os
import sys

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from aixbt_mcp.aixbt_api import AixbtApiClient  # noqa: E402
from aixbt_mcp.config import load_config, load_env_file  # noqa: E402
from aixbt_mcp.logging_config import configure_logging  # noqa: E402
from aixbt_mcp.mcp import PROJECT_SUMMARIES_TOOL, TOP_PROJECTS_TOOL, build_registry  # noqa: E402

# Ticker used for the summaries lookup; override via env.
SAMPLE_TICKER = os.getenv("AIXBT_SAMPLE_TICKER", "ETH")


async def main() -> None:
    load_env_file()
    config = load_config()
    configure_logging(config.log_level, config.log_format)
    client = AixbtApiClient(config)
    registry = build_registry(client, config.profile)
    try:
        top = await registry.call_tool(TOP_PROJECTS_TOOL, {"limit": 3})
        print("Top projects (limit 3):", top.to_dict())
        summaries = await registry.call_tool(PROJECT_SUMMARIES_TOOL, {"name": SAMPLE_TICKER, "limit": 2})
        print(f"Summaries for {SAMPLE_TICKER} (limit 2):", summaries.to_dict())
    finally:
        await client.aclose()


if __name__ == "__main__":
    asyncio.run(main())
