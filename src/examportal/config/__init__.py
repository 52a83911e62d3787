"""Configuration package for the exam portal."""

from examportal.config.app_config import (
    AppConfig,
    AttemptsConfig,
    ConfigError,
    DatabaseConfig,
    clear_config_cache,
    load_app_config,
    set_app_config,
)

__all__ = [
    "AppConfig",
    "AttemptsConfig",
    "ConfigError",
    "DatabaseConfig",
    "clear_config_cache",
    "load_app_config",
    "set_app_config",
]
