import os

import pytest

from aixbt_mcp.config import (
    PRODUCTION_BASE_URL,
    STAGING_BASE_URL,
    AixbtConfig,
    ConfigurationError,
    get_profile,
    load_api_key,
    load_config,
    load_env_file,
)


def test_load_api_key_missing():
    assert load_api_key() is None


def test_load_api_key_blank_is_missing(monkeypatch):
    monkeypatch.setenv("API_KEY", "   ")
    assert load_api_key() is None


def test_load_api_key_strips(monkeypatch):
    monkeypatch.setenv("API_KEY", " secret \n")
    assert load_api_key() == "secret"


def test_load_config_requires_key():
    with pytest.raises(ConfigurationError, match="API_KEY"):
        load_config()


def test_load_config_defaults_to_production(monkeypatch):
    monkeypatch.setenv("API_KEY", "secret")
    cfg = load_config()
    assert cfg.api_key == "secret"
    assert cfg.profile.name == "production"
    assert cfg.projects_url == f"{PRODUCTION_BASE_URL}/v1/projects"
    assert cfg.log_level == "INFO"


def test_load_config_staging_profile(monkeypatch):
    monkeypatch.setenv("API_KEY", "secret")
    monkeypatch.setenv("AIXBT_MCP_PROFILE", "Staging")
    cfg = load_config()
    assert cfg.base_url == STAGING_BASE_URL
    assert cfg.profile.include_score is True
    assert cfg.profile.describe_tools is False


def test_unknown_profile_is_configuration_error():
    with pytest.raises(ConfigurationError, match="Unknown profile"):
        get_profile("mainnet")


def test_config_is_immutable(production_config):
    with pytest.raises(AttributeError):
        production_config.api_key = "other"  # type: ignore[misc]


def test_config_repr_hides_key(production_config):
    assert "test-key" not in repr(production_config)


def test_load_env_file_does_not_override(monkeypatch, tmp_path):
    env_file = tmp_path / "local.env"
    env_file.write_text("API_KEY=from-file\nAIXBT_MCP_PROFILE=staging\n", encoding="utf-8")
    monkeypatch.setenv("API_KEY", "from-env")
    monkeypatch.delenv("AIXBT_MCP_PROFILE", raising=False)
    try:
        assert load_env_file(str(env_file)) is True
        assert os.environ["API_KEY"] == "from-env"
        assert os.environ["AIXBT_MCP_PROFILE"] == "staging"
    finally:
        os.environ.pop("AIXBT_MCP_PROFILE", None)


def test_load_env_file_missing_file(tmp_path):
    assert load_env_file(str(tmp_path / "nope.env")) is False


def test_explicit_config_construction():
    cfg = AixbtConfig(api_key="k")
    assert cfg.profile.name == "production"
