"""
Configuration management for shareddb.

Settings come from SHAREDDB_* environment variables, then an optional
config.yaml, then defaults.
"""

import logging
import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic_settings import BaseSettings

DEFAULT_CONFIG_PATH = Path("config.yaml")


class Settings(BaseSettings):
    """Application settings."""

    # Database Settings
    database_path: str = "data/shareddb.sqlite3"
    backend: Literal["sqlite", "kuzu"] = "sqlite"
    busy_timeout_ms: int = 5000
    journal_mode: str = "WAL"

    # Logging Settings
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    model_config = {"env_prefix": "SHAREDDB_"}


def load_config(config_path: str | Path = DEFAULT_CONFIG_PATH) -> dict[str, Any]:
    """
    Load configuration from a YAML file.

    Args:
        config_path: Path to config.yaml

    Returns:
        Configuration dictionary (empty if the file is empty)

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        config = yaml.safe_load(f)

    return config or {}


def get_settings(config_path: str | Path | None = None) -> Settings:
    """
    Get application settings.

    SHAREDDB_DATABASE_PATH in the environment takes precedence over the YAML
    file. Without either, defaults are used.

    Args:
        config_path: YAML file to read (default: ./config.yaml)

    Returns:
        Settings instance
    """
    if os.environ.get("SHAREDDB_DATABASE_PATH"):
        return Settings()

    config_path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    if not config_path.exists():
        return Settings()

    config = load_config(config_path)
    database = config.get("database", {}) or {}
    logging_section = config.get("logging", {}) or {}

    overrides: dict[str, Any] = {}
    if "path" in database:
        db_path = Path(database["path"])
        # Resolve relative to the config file
        if not db_path.is_absolute() and str(db_path) != ":memory:":
            db_path = config_path.resolve().parent / db_path
        overrides["database_path"] = str(db_path)
    if "backend" in database:
        overrides["backend"] = database["backend"]
    if "busy_timeout_ms" in database:
        overrides["busy_timeout_ms"] = database["busy_timeout_ms"]
    if "journal_mode" in database:
        overrides["journal_mode"] = database["journal_mode"]
    if "level" in logging_section:
        overrides["log_level"] = logging_section["level"]
    if "format" in logging_section:
        overrides["log_format"] = logging_section["format"]

    return Settings(**overrides)


def configure_logging(settings: Settings) -> None:
    """Configure root logging from settings."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format=settings.log_format,
    )
