"""
Thin HTTP client for the AIXBT projects endpoint.

Every request carries the static ``x-api-key`` header. HTTP and transport
failures are mapped to internal exceptions that the tool layer turns into
safe, user-facing error payloads.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from aixbt_mcp.config import AixbtConfig
from aixbt_mcp.logging_config import log_request, log_response

logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-api-key"


class AixbtApiError(Exception):
    """Base exception for AIXBT API errors."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UpstreamUnreachableError(AixbtApiError):
    """Raised when the request never produced an HTTP response."""


class AixbtApiClient:
    """Async client for the AIXBT ``/v1/projects`` endpoint."""

    def __init__(
        self,
        config: AixbtConfig,
        *,
        async_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.config = config
        self._client: Optional[httpx.AsyncClient] = async_client
        self._owns_client = async_client is None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _build_headers(self) -> Dict[str, str]:
        return {API_KEY_HEADER: self.config.api_key}

    def _process_response(self, response: httpx.Response, url: str) -> Any:
        if response.status_code >= 400:
            logger.error("[RESPONSE] %s %s", response.status_code, url)
            raise AixbtApiError(
                f"Request failed with status code {response.status_code}",
                status_code=response.status_code,
            )
        try:
            data = response.json()
        except ValueError:
            # No envelope to read; callers treat None as a failed envelope.
            logger.warning("[RESPONSE] %s %s non-JSON body", response.status_code, url)
            return None
        log_response(logger, response.status_code, url, data)
        return data

    async def _request(self, url: str, *, params: Optional[Dict[str, Any]] = None) -> Any:
        client = await self._get_client()
        log_request(logger, "GET", url, params)
        try:
            response = await client.get(url, params=params, headers=self._build_headers())
        except httpx.RequestError as exc:
            logger.warning("AIXBT API unreachable for %s", url)
            raise UpstreamUnreachableError(str(exc) or type(exc).__name__) from exc
        return self._process_response(response, url)

    async def fetch_projects(self, *, limit: int, ticker: Optional[str] = None) -> Any:
        """
        Retrieve the upstream projects envelope.

        Args:
            limit: Upstream ``limit`` query parameter.
            ticker: Optional lowercase ticker filter.

        Returns:
            The decoded JSON body, expected to be ``{"status": int, "data": [...]}``,
            or None when the body is not JSON.
        """
        params: Dict[str, Any] = {"limit": limit}
        if ticker is not None:
            params["ticker"] = ticker
        return await self._request(self.config.projects_url, params=params)
