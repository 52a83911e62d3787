"""Application configuration loader.

Loads centralized configuration from data/config/examportal_v1.yaml
with fallback to built-in defaults.

Usage:
    from examportal.config.app_config import load_app_config

    config = load_app_config()
    policy = config.attempts.retake_policy
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/examportal_v1.yaml")

CONFIG_ENV = "EXAMPORTAL_CONFIG"
DB_PATH_ENV = "EXAMPORTAL_DB"

RetakePolicy = Literal["multiple", "single"]
RETAKE_POLICIES: tuple[str, ...] = ("multiple", "single")


@dataclass
class DatabaseConfig:
    """SQLite connection settings."""

    path: Path = Path("db/examportal.db")
    busy_timeout_seconds: float = 5.0


@dataclass
class AttemptsConfig:
    """Attempt lifecycle policy."""

    retake_policy: RetakePolicy = "multiple"
    max_attempts: int | None = None
    enforce_deadline: bool = True
    grace_seconds: int = 0


@dataclass
class AppConfig:
    """Application-wide configuration."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    attempts: AttemptsConfig = field(default_factory=AttemptsConfig)


class ConfigError(Exception):
    """Raised when the configuration file holds invalid values."""

    pass


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "database": {
            "path": "db/examportal.db",
            "busy_timeout_seconds": 5.0,
        },
        "attempts": {
            "retake_policy": "multiple",
            "max_attempts": None,
            "enforce_deadline": True,
            "grace_seconds": 0,
        },
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    db_data = data.get("database") or {}
    database = DatabaseConfig(
        path=Path(db_data.get("path", "db/examportal.db")),
        busy_timeout_seconds=float(db_data.get("busy_timeout_seconds", 5.0)),
    )

    attempts_data = data.get("attempts") or {}
    retake_policy = attempts_data.get("retake_policy", "multiple")
    if retake_policy not in RETAKE_POLICIES:
        raise ConfigError(
            f"Invalid retake_policy '{retake_policy}'. "
            f"Expected one of: {', '.join(RETAKE_POLICIES)}"
        )

    max_attempts = attempts_data.get("max_attempts")
    if max_attempts is not None and int(max_attempts) < 1:
        raise ConfigError("max_attempts must be a positive integer or null")

    grace_seconds = int(attempts_data.get("grace_seconds", 0))
    if grace_seconds < 0:
        raise ConfigError("grace_seconds cannot be negative")

    attempts = AttemptsConfig(
        retake_policy=retake_policy,
        max_attempts=int(max_attempts) if max_attempts is not None else None,
        enforce_deadline=bool(attempts_data.get("enforce_deadline", True)),
        grace_seconds=grace_seconds,
    )

    return AppConfig(database=database, attempts=attempts)


def _config_path() -> Path:
    """Resolve config file path, honouring EXAMPORTAL_CONFIG."""
    override = os.environ.get(CONFIG_ENV)
    return Path(override) if override else CONFIG_FILE


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config with fallback to defaults.

    Args:
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.

    Raises:
        ConfigError: If the file contains invalid policy values
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    data: dict[str, Any]
    config_path = _config_path()

    if config_path.exists():
        logger.debug("loading_app_config", source=str(config_path))
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    else:
        logger.info("using_default_config")
        data = _get_defaults()

    config = _parse_config(data)

    db_override = os.environ.get(DB_PATH_ENV)
    if db_override:
        config.database.path = Path(db_override)

    _cached_config = config
    return _cached_config


def set_app_config(config: AppConfig) -> None:
    """Install an explicit configuration (used by tests and embedding callers)."""
    global _cached_config
    _cached_config = config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
