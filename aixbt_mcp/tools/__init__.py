"""LLM-facing tool implementations."""

from .projects import ToolResult, list_project_latest_summaries, list_top_projects

__all__ = [
    "ToolResult",
    "list_top_projects",
    "list_project_latest_summaries",
]
