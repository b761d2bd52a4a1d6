"""HTTP client wrappers for the AIXBT API."""

from .client import (
    API_KEY_HEADER,
    AixbtApiClient,
    AixbtApiError,
    UpstreamUnreachableError,
)

__all__ = [
    "API_KEY_HEADER",
    "AixbtApiClient",
    "AixbtApiError",
    "UpstreamUnreachableError",
]
