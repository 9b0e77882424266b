"""
bootstrap/ - Bootstrap Layer

Provides configuration loading, logging setup and process entry points.
"""

from .config import (
    FormEngineConfig,
    AsyncValidationConfig,
    OptionsConfig,
    APIConfig,
    LoggingConfig,
    DEFAULT_CONFIG_PATHS,
    load_config,
    get_config,
    reset_config,
)

from .entrypoints import (
    JSONFormatter,
    cli_main,
    api_main,
    setup_logging,
)


__all__ = [
    # Config
    "FormEngineConfig",
    "AsyncValidationConfig",
    "OptionsConfig",
    "APIConfig",
    "LoggingConfig",
    "DEFAULT_CONFIG_PATHS",
    "load_config",
    "get_config",
    "reset_config",
    # Entry Points
    "JSONFormatter",
    "cli_main",
    "api_main",
    "setup_logging",
]
