"""Project ranking and summary tools."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from aixbt_mcp.aixbt_api import AixbtApiClient, AixbtApiError
from aixbt_mcp.tools.validators import PROJECT_LOOKUP_LIMIT, normalize_ticker

logger = logging.getLogger(__name__)

TOP_PROJECTS_CONTRACT_ERROR = "Failed to retrieve projects"
TOP_PROJECTS_FETCH_ERROR = "Failed to fetch top projects"
PROJECT_NOT_FOUND_ERROR = "Project not found"
SUMMARIES_FETCH_ERROR = "Failed to fetch project summaries"

UPSTREAM_OK = 200


@dataclass(frozen=True, slots=True)
class ToolResult:
    """The only value handed back to a transport: one text block plus an error flag."""

    text: str
    is_error: bool = False

    @classmethod
    def success(cls, payload: Any) -> "ToolResult":
        return cls(text=json.dumps(payload, indent=2, ensure_ascii=False))

    @classmethod
    def failure(cls, message: str, details: Optional[str] = None) -> "ToolResult":
        body: Dict[str, Any] = {"error": message}
        if details is not None:
            body["details"] = details
        return cls(text=json.dumps(body, separators=(",", ":"), ensure_ascii=False), is_error=True)

    def to_dict(self) -> Dict[str, Any]:
        wrapped: Dict[str, Any] = {"content": [{"type": "text", "text": self.text}]}
        if self.is_error:
            wrapped["isError"] = True
        return wrapped


def _pick(raw: Dict[str, Any], fields: Sequence[str]) -> Dict[str, Any]:
    # Absent upstream fields are dropped, explicit nulls are kept.
    return {field: raw[field] for field in fields if field in raw}


def _envelope_data(envelope: Any) -> Optional[Any]:
    """Return ``data`` when the envelope reports success, otherwise None."""
    if not isinstance(envelope, dict):
        return None
    if envelope.get("status") != UPSTREAM_OK:
        return None
    return envelope.get("data")


def _require_records(data: Any) -> List[Dict[str, Any]]:
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise AixbtApiError("Unexpected project data in AIXBT response.")
    return data


def _shape_summaries(project: Dict[str, Any], limit: int) -> List[Dict[str, Any]]:
    raw_summaries = project.get("summaries") or []
    if not isinstance(raw_summaries, list):
        raise AixbtApiError("Unexpected summaries in AIXBT response.")
    limited = raw_summaries[:limit]
    if not all(isinstance(summary, dict) for summary in limited):
        raise AixbtApiError("Unexpected summaries in AIXBT response.")
    return [_pick(summary, ("description",)) for summary in limited]


async def list_top_projects(
    limit: int,
    *,
    client: AixbtApiClient,
    include_score: bool = False,
) -> ToolResult:
    """
    List the highest ranked projects, in upstream order.

    Args:
        limit: Number of projects to request upstream (1-50).
        client: AIXBT API client.
        include_score: Expose the upstream ``score`` field.

    Returns:
        ToolResult with a JSON array of ``{name, rationale}`` (plus ``score``).
    """
    fields = ("name", "score", "rationale") if include_score else ("name", "rationale")
    try:
        envelope = await client.fetch_projects(limit=limit)
        data = _envelope_data(envelope)
        if data is None:
            logger.error("Failed to retrieve projects from API")
            return ToolResult.failure(TOP_PROJECTS_CONTRACT_ERROR)

        projects = _require_records(data)
        logger.debug("Retrieved %d projects", len(projects))
        return ToolResult.success([_pick(project, fields) for project in projects])
    except Exception as exc:
        logger.exception("Error fetching top projects", extra={"tool": "list-top-projects"})
        return ToolResult.failure(TOP_PROJECTS_FETCH_ERROR, details=str(exc))


async def list_project_latest_summaries(
    name: str,
    limit: int,
    *,
    client: AixbtApiClient,
    lookup_limit: int = PROJECT_LOOKUP_LIMIT,
) -> ToolResult:
    """
    Return the latest summaries for one project looked up by ticker.

    The upstream query always asks for ``lookup_limit`` projects; ``limit``
    only truncates the matched project's summaries.
    """
    try:
        envelope = await client.fetch_projects(limit=lookup_limit, ticker=normalize_ticker(name))
        data = _envelope_data(envelope)
        if not data:
            logger.error("Project not found: %s", name)
            return ToolResult.failure(PROJECT_NOT_FOUND_ERROR)

        project = _require_records(data)[0]
        summaries = _shape_summaries(project, limit)
        logger.debug(
            "Found project: %s, returning %d summaries",
            project.get("name"),
            len(summaries),
        )
        payload: Dict[str, Any] = {}
        if "name" in project:
            payload["projectName"] = project["name"]
        payload["summaries"] = summaries
        return ToolResult.success(payload)
    except Exception as exc:
        logger.exception(
            "Error fetching project summaries for %s",
            name,
            extra={"tool": "list-project-latest-summaries"},
        )
        return ToolResult.failure(SUMMARIES_FETCH_ERROR, details=str(exc))
