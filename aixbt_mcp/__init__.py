"""
Read-only AIXBT MCP server package.

This package exposes LLM-friendly tools backed by the AIXBT projects API. See
DESIGN.md for full details.
"""

__version__ = "1.0.0"

__all__ = ["config", "__version__"]
