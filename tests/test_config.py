"""
Unit tests for configuration loading
"""

import os

import pytest
import yaml

from datalink.config import Config, get_config
from datalink.llm.configs import LLMSettings


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for name in ("LOG_LEVEL", "DATALINK_MODEL", "DATALINK_MODEL_PROVIDER", "DATALINK_MAX_COMBINATIONS"):
        monkeypatch.delenv(name, raising=False)

    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({
        "engine": {"max_combinations_per_key": 50},
        "llm": {"model": "gemini-2.5-pro", "unknown": True},
    }), encoding="utf-8")
    return path


class TestConfig:
    """Test cases for Config"""

    def test_yaml_merged_over_defaults(self, config_file):
        config = Config(str(config_file))

        assert config.get("engine.max_combinations_per_key") == 50
        assert config.get("engine.default_join_type") == "ADDITIVE"
        assert config.get("llm.provider") == "google_genai"
        assert config.get("verification.join_check.max_expansion_ratio") == 2.0

    def test_missing_file_uses_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("DATALINK_MAX_COMBINATIONS", raising=False)

        config = Config(str(tmp_path / "absent.yaml"))

        assert config.get("engine.max_combinations_per_key") is None
        assert config.get("data.raw_dir") == "data/raw"

    def test_env_overrides(self, config_file, monkeypatch):
        monkeypatch.setenv("DATALINK_MAX_COMBINATIONS", "5")
        monkeypatch.setenv("DATALINK_MODEL", "claude-sonnet-4-5")
        monkeypatch.setenv("DATALINK_MODEL_PROVIDER", "anthropic")

        config = Config(str(config_file))

        assert config.get("engine.max_combinations_per_key") == 5
        assert config.get("llm.model") == "claude-sonnet-4-5"
        assert config.get("llm.provider") == "anthropic"

    def test_dotenv_file(self, config_file, tmp_path):
        (tmp_path / ".env").write_text("LOG_LEVEL=DEBUG\n", encoding="utf-8")

        try:
            config = Config(str(config_file))
            assert config.get("logging.level") == "DEBUG"
        finally:
            os.environ.pop("LOG_LEVEL", None)

    def test_get_and_set(self, config_file):
        config = Config(str(config_file))

        assert config.get("no.such.key", "fallback") == "fallback"
        config.set("discovery.max_candidates", 2)
        assert config.get_stage_config("discovery")["max_candidates"] == 2
        assert config.get_verification_config("join_check")["min_key_coverage"] == 0.5

    def test_get_config_is_cached(self, config_file):
        assert get_config(str(config_file)) is get_config()


def test_llm_settings_from_config():
    settings = LLMSettings.from_config({"model": "gemini-2.5-pro", "temperature": 0.0, "unknown": 1})

    assert settings.model == "gemini-2.5-pro"
    assert settings.temperature == 0.0
    assert settings.provider == "google_genai"
    assert settings.api_key_env == "GOOGLE_API_KEY"


def test_llm_settings_defaults():
    assert LLMSettings.from_config(None) == LLMSettings()
