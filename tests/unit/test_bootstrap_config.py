"""
Unit tests for bootstrap/config.py and bootstrap/entrypoints.py logging
"""

import json
import logging
import os

import pytest

from formengine.bootstrap import config as config_module
from formengine.bootstrap import (
    FormEngineConfig,
    JSONFormatter,
    get_config,
    load_config,
    reset_config,
)


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    for name in list(os.environ):
        if name.startswith("FORMENGINE_"):
            monkeypatch.delenv(name)
    reset_config()
    yield
    reset_config()


class TestDefaults:
    """Test default values."""

    def test_defaults(self):
        config = FormEngineConfig()
        assert config.environment == "development"
        assert config.async_validation.debounce_ms == 300
        assert config.async_validation.failure_message == "Validation request failed"
        assert config.options.cache_ttl_seconds == 300.0
        assert config.api.port == 8000
        assert config.logging.level == "INFO"


class TestFromEnv:
    """Test environment overrides."""

    def test_env_values(self, monkeypatch):
        monkeypatch.setenv("FORMENGINE_ENVIRONMENT", "production")
        monkeypatch.setenv("FORMENGINE_DEBUG", "true")
        monkeypatch.setenv("FORMENGINE_ASYNC_DEBOUNCE_MS", "500")
        monkeypatch.setenv("FORMENGINE_OPTIONS_CACHE_TTL", "60")
        monkeypatch.setenv("FORMENGINE_API_CORS_ORIGINS", "https://a.test,https://b.test")
        monkeypatch.setenv("FORMENGINE_JSON_LOGS", "TRUE")

        config = FormEngineConfig.from_env()
        assert config.environment == "production"
        assert config.debug is True
        assert config.async_validation.debounce_ms == 500
        assert config.options.cache_ttl_seconds == 60.0
        assert config.api.cors_origins == ["https://a.test", "https://b.test"]
        assert config.logging.json_logs is True


class TestFromFile:
    """Test JSON file loading."""

    def test_file_overrides(self, tmp_path):
        path = tmp_path / "formengine.json"
        path.write_text(json.dumps({
            "environment": "staging",
            "async_validation": {"debounce_ms": 150},
            "api": {"port": 9000},
        }))
        config = FormEngineConfig.from_file(str(path))
        assert config.environment == "staging"
        assert config.async_validation.debounce_ms == 150
        assert config.api.port == 9000

    def test_missing_file_falls_back(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING, logger="bootstrap.config"):
            config = FormEngineConfig.from_file(str(tmp_path / "nope.json"))
        assert config.environment == "development"
        assert "Config file not found" in caplog.text

    def test_unknown_keys_warn(self, tmp_path, caplog):
        path = tmp_path / "formengine.json"
        path.write_text(json.dumps({"api": {"colour": "blue"}}))
        with caplog.at_level(logging.WARNING, logger="bootstrap.config"):
            config = FormEngineConfig.from_file(str(path))
        assert not hasattr(config.api, "colour")
        assert "api.colour" in caplog.text

    def test_to_dict(self):
        data = FormEngineConfig().to_dict()
        assert data["version"] == "1.0.0"
        assert data["async_validation"]["debounce_ms"] == 300
        assert data["options"]["cache_ttl_seconds"] == 300.0


class TestGlobalConfig:
    """Test the cached module-level config."""

    def test_load_explicit_path(self, tmp_path):
        path = tmp_path / "custom.json"
        path.write_text(json.dumps({"environment": "test"}))
        config = load_config(str(path))
        assert config.environment == "test"
        assert get_config() is config

    def test_default_paths(self, tmp_path, monkeypatch):
        path = tmp_path / "formengine.json"
        path.write_text(json.dumps({"debug": True}))
        monkeypatch.setattr(config_module, "DEFAULT_CONFIG_PATHS", [str(tmp_path / "absent.json"), str(path)])
        assert load_config().debug is True

    def test_get_config_loads_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setattr(config_module, "DEFAULT_CONFIG_PATHS", [str(tmp_path / "absent.json")])
        monkeypatch.setenv("FORMENGINE_ENVIRONMENT", "ci")
        assert get_config().environment == "ci"


class TestJSONFormatter:
    """Test structured log output."""

    def test_format(self):
        record = logging.LogRecord("remote.http", logging.WARNING, __file__, 1, "fetch %s", ("failed",), None)
        data = json.loads(JSONFormatter().format(record))
        assert data["level"] == "WARNING"
        assert data["logger"] == "remote.http"
        assert data["message"] == "fetch failed"
