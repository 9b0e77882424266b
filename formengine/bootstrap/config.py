"""
bootstrap/config.py - Engine configuration

Provides configuration loading from files, environment variables, and defaults.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from pathlib import Path
import os
import json
import logging

logger = logging.getLogger("bootstrap.config")


@dataclass
class AsyncValidationConfig:
    """Remote validation behaviour."""

    debounce_ms: int = 300
    failure_message: str = "Validation request failed"
    timeout_seconds: float = 10.0
    base_url: str = ""

    @classmethod
    def from_env(cls) -> "AsyncValidationConfig":
        return cls(
            debounce_ms=int(os.getenv("FORMENGINE_ASYNC_DEBOUNCE_MS", "300")),
            failure_message=os.getenv("FORMENGINE_ASYNC_FAILURE_MESSAGE", "Validation request failed"),
            timeout_seconds=float(os.getenv("FORMENGINE_ASYNC_TIMEOUT", "10")),
            base_url=os.getenv("FORMENGINE_ASYNC_BASE_URL", ""),
        )


@dataclass
class OptionsConfig:
    """Remote option provider settings."""

    base_url: str = ""
    timeout_seconds: float = 10.0
    cache_ttl_seconds: float = 300.0

    @classmethod
    def from_env(cls) -> "OptionsConfig":
        return cls(
            base_url=os.getenv("FORMENGINE_OPTIONS_BASE_URL", ""),
            timeout_seconds=float(os.getenv("FORMENGINE_OPTIONS_TIMEOUT", "10")),
            cache_ttl_seconds=float(os.getenv("FORMENGINE_OPTIONS_CACHE_TTL", "300")),
        )


@dataclass
class APIConfig:
    """API server configuration."""

    host: str = "0.0.0.0"
    port: int = 8000
    enable_docs: bool = True
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "APIConfig":
        cors = os.getenv("FORMENGINE_API_CORS_ORIGINS", "*")
        return cls(
            host=os.getenv("FORMENGINE_API_HOST", "0.0.0.0"),
            port=int(os.getenv("FORMENGINE_API_PORT", "8000")),
            enable_docs=os.getenv("FORMENGINE_API_ENABLE_DOCS", "true").lower() == "true",
            cors_origins=cors.split(",") if cors else ["*"],
        )


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_file: Optional[str] = None
    json_logs: bool = False

    @classmethod
    def from_env(cls) -> "LoggingConfig":
        return cls(
            level=os.getenv("FORMENGINE_LOG_LEVEL", "INFO"),
            format=os.getenv("FORMENGINE_LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
            log_file=os.getenv("FORMENGINE_LOG_FILE"),
            json_logs=os.getenv("FORMENGINE_JSON_LOGS", "false").lower() == "true",
        )


@dataclass
class FormEngineConfig:
    """Root configuration."""

    environment: str = "development"
    debug: bool = False
    version: str = "1.0.0"

    async_validation: AsyncValidationConfig = field(default_factory=AsyncValidationConfig)
    options: OptionsConfig = field(default_factory=OptionsConfig)
    api: APIConfig = field(default_factory=APIConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls) -> "FormEngineConfig":
        """Create configuration from environment variables."""
        return cls(
            environment=os.getenv("FORMENGINE_ENVIRONMENT", "development"),
            debug=os.getenv("FORMENGINE_DEBUG", "false").lower() == "true",
            async_validation=AsyncValidationConfig.from_env(),
            options=OptionsConfig.from_env(),
            api=APIConfig.from_env(),
            logging=LoggingConfig.from_env(),
        )

    @classmethod
    def from_file(cls, filepath: str) -> "FormEngineConfig":
        """Load configuration from JSON file; file values override the environment."""
        path = Path(filepath)
        if not path.exists():
            logger.warning(f"Config file not found: {filepath}, using defaults")
            return cls.from_env()

        with open(path) as f:
            data = json.load(f)

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "FormEngineConfig":
        config = cls.from_env()

        if "environment" in data:
            config.environment = data["environment"]
        if "debug" in data:
            config.debug = data["debug"]

        for section in ("async_validation", "options", "api", "logging"):
            target = getattr(config, section)
            for key, value in data.get(section, {}).items():
                if hasattr(target, key):
                    setattr(target, key, value)
                else:
                    logger.warning(f"Unknown config key ignored: {section}.{key}")

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Serialize config to dictionary."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "version": self.version,
            "async_validation": {
                "debounce_ms": self.async_validation.debounce_ms,
                "failure_message": self.async_validation.failure_message,
                "timeout_seconds": self.async_validation.timeout_seconds,
                "base_url": self.async_validation.base_url,
            },
            "options": {
                "base_url": self.options.base_url,
                "timeout_seconds": self.options.timeout_seconds,
                "cache_ttl_seconds": self.options.cache_ttl_seconds,
            },
            "api": {
                "host": self.api.host,
                "port": self.api.port,
                "enable_docs": self.api.enable_docs,
                "cors_origins": list(self.api.cors_origins),
            },
            "logging": {
                "level": self.logging.level,
                "log_file": self.logging.log_file,
                "json_logs": self.logging.json_logs,
            },
        }


# Global config instance
_config: Optional[FormEngineConfig] = None

DEFAULT_CONFIG_PATHS = [
    "./formengine.json",
    "./config/formengine.json",
    "~/.formengine/config.json",
]


def load_config(filepath: str = None) -> FormEngineConfig:
    """
    Load configuration from file or environment.

    Args:
        filepath: Optional path to JSON config file

    Returns:
        FormEngineConfig instance
    """
    global _config

    if filepath:
        _config = FormEngineConfig.from_file(filepath)
    else:
        for path in DEFAULT_CONFIG_PATHS:
            candidate = os.path.expanduser(path)
            if Path(candidate).exists():
                logger.info(f"Loading config from: {candidate}")
                _config = FormEngineConfig.from_file(candidate)
                return _config

        _config = FormEngineConfig.from_env()

    logger.info(f"Configuration loaded: environment={_config.environment}")
    return _config


def get_config() -> FormEngineConfig:
    """Get current configuration, loading if needed."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Drop the cached configuration."""
    global _config
    _config = None
