"""
Configuration helpers for the AIXBT MCP server.

This module centralizes deployment profile selection, API key loading and
logging settings. No secrets are stored in the repository; the API key is read
from the environment, optionally seeded from a local env file.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from dotenv import load_dotenv

# Environment variables
API_KEY_ENV_VAR = "API_KEY"
ENV_FILE_ENV_VAR = "AIXBT_MCP_ENV_FILE"
PROFILE_ENV_VAR = "AIXBT_MCP_PROFILE"
LOG_LEVEL_ENV_VAR = "AIXBT_MCP_LOG_LEVEL"
LOG_FORMAT_ENV_VAR = "AIXBT_MCP_LOG_FORMAT"
DEFAULT_ENV_FILE = ".env"

# Upstream hosts
PRODUCTION_BASE_URL = "https://api.aixbt.tech"
STAGING_BASE_URL = "https://core-api.aixbt.tech"
PROJECTS_PATH = "/v1/projects"

# Server identity
SERVER_NAME = "AIXBT API Server"
SERVER_VERSION = "1.0.0"

DEFAULT_PROFILE = "production"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "plain"  # plain or json


class ConfigurationError(Exception):
    """Raised when the server cannot be configured from the environment."""


@dataclass(frozen=True, slots=True)
class DeploymentProfile:
    """One of the fixed upstream deployments and its output shape."""

    name: str
    base_url: str
    include_score: bool
    describe_tools: bool


PROFILES: Dict[str, DeploymentProfile] = {
    "production": DeploymentProfile(
        name="production",
        base_url=PRODUCTION_BASE_URL,
        include_score=False,
        describe_tools=True,
    ),
    "staging": DeploymentProfile(
        name="staging",
        base_url=STAGING_BASE_URL,
        include_score=True,
        describe_tools=False,
    ),
}


def load_env_file(path: Optional[str] = None) -> bool:
    """
    Load variables from a local env file without overriding the environment.

    Returns:
        True if a file was found and loaded.
    """
    env_path = Path(path or os.getenv(ENV_FILE_ENV_VAR, DEFAULT_ENV_FILE))
    if not env_path.is_file():
        return False
    return load_dotenv(env_path, override=False)


def load_api_key() -> Optional[str]:
    """
    Load the AIXBT API key from the environment.

    Returns:
        The API key string if set and non-blank, otherwise None. The key is
        never logged or returned to callers.
    """
    env_key = os.getenv(API_KEY_ENV_VAR)
    if env_key and env_key.strip():
        return env_key.strip()
    return None


def get_profile(name: Optional[str] = None) -> DeploymentProfile:
    """Resolve a deployment profile by name (defaults to the environment)."""
    profile_name = (name or os.getenv(PROFILE_ENV_VAR) or DEFAULT_PROFILE).strip().lower()
    try:
        return PROFILES[profile_name]
    except KeyError:
        known = ", ".join(sorted(PROFILES))
        raise ConfigurationError(
            f"Unknown profile '{profile_name}' (expected one of: {known})"
        ) from None


@dataclass(frozen=True, slots=True)
class AixbtConfig:
    """Runtime configuration shared by the client, registry and handlers."""

    api_key: str
    profile: DeploymentProfile = PROFILES[DEFAULT_PROFILE]
    log_level: str = DEFAULT_LOG_LEVEL
    log_format: str = DEFAULT_LOG_FORMAT

    @property
    def base_url(self) -> str:
        return self.profile.base_url

    @property
    def projects_url(self) -> str:
        return f"{self.profile.base_url}{PROJECTS_PATH}"

    def __repr__(self) -> str:
        return (
            f"AixbtConfig(profile={self.profile.name!r}, log_level={self.log_level!r}, "
            f"log_format={self.log_format!r})"
        )


def load_config(api_key: Optional[str] = None) -> AixbtConfig:
    """
    Build the immutable configuration from the environment.

    Raises:
        ConfigurationError: when the API key is missing or the profile unknown.
    """
    key = api_key or load_api_key()
    if not key:
        raise ConfigurationError(f"{API_KEY_ENV_VAR} environment variable is not set")
    return AixbtConfig(
        api_key=key,
        profile=get_profile(),
        log_level=os.getenv(LOG_LEVEL_ENV_VAR, DEFAULT_LOG_LEVEL),
        log_format=os.getenv(LOG_FORMAT_ENV_VAR, DEFAULT_LOG_FORMAT),
    )
