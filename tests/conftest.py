import logging
import os
import sys

import pytest

# Ensure repository root is on sys.path before importing project modules.
repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if repo_root not in sys.path:
    sys.path.insert(0, repo_root)

from aixbt_mcp.config import PROFILES, AixbtConfig  # noqa: E402


class StubClient:
    """Records fetch_projects calls and replays a canned envelope or error."""

    def __init__(self, envelope=None, exc=None):
        self.envelope = envelope
        self.exc = exc
        self.calls = []

    async def fetch_projects(self, *, limit, ticker=None):
        self.calls.append({"limit": limit, "ticker": ticker})
        if self.exc is not None:
            raise self.exc
        return self.envelope


@pytest.fixture
def stub_client_factory():
    return StubClient


@pytest.fixture
def production_config():
    return AixbtConfig(api_key="test-key", profile=PROFILES["production"])


@pytest.fixture
def staging_config():
    return AixbtConfig(api_key="test-key", profile=PROFILES["staging"])


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for var in ("API_KEY", "AIXBT_MCP_PROFILE", "AIXBT_MCP_LOG_LEVEL", "AIXBT_MCP_LOG_FORMAT"):
        monkeypatch.delenv(var, raising=False)
    # Keep a developer's local .env out of the tests.
    monkeypatch.setenv("AIXBT_MCP_ENV_FILE", str(tmp_path / "missing.env"))


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    level = root.level
    yield
    # Drop handlers installed by configure_logging; pytest manages its own.
    for handler in root.handlers[:]:
        if type(handler) is logging.StreamHandler:
            root.removeHandler(handler)
    root.setLevel(level)
