"""imagecast application configuration.

Loads settings from a single YAML file:
  * imagecast.settings.yaml  — server, storage and logging configuration

Every key is optional; a missing file yields the defaults, which match the
service's historical fixed constants (uploads/, static/, port 8080).
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

SETTINGS_FILE = Path("imagecast.settings.yaml")


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        logger.warning("Config file not found: %s", path)
        return {}
    with path.open(encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


# ---------------------------------------------------------------------------
# Settings models
# ---------------------------------------------------------------------------


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8080


class StorageSettings(BaseModel):
    """Where uploads land and which sniffed types are accepted."""
    upload_dir:           str  = "uploads"
    static_dir:           str  = "static"
    # Accept content that sniffs as application/octet-stream.
    allow_generic_binary: bool = True


class LoggingSettings(BaseModel):
    level: str = "info"

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        if not isinstance(logging.getLevelName(value.upper()), int):
            raise ValueError(f"Unknown log level: {value}")
        return value.lower()


class AppSettings(BaseModel):
    server:  ServerSettings  = Field(default_factory=ServerSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


# ---------------------------------------------------------------------------
# Public loader
# ---------------------------------------------------------------------------


def load_config(settings_path: Optional[Path] = None) -> AppSettings:
    """Load *settings_path* (default ``imagecast.settings.yaml``) into AppSettings."""
    path = Path(settings_path) if settings_path is not None else SETTINGS_FILE
    settings_data = _load_yaml(path)

    app_settings = AppSettings(**settings_data)
    logger.info(
        "Settings loaded (server=%s:%s, upload_dir=%s, allow_generic_binary=%s)",
        app_settings.server.host,
        app_settings.server.port,
        app_settings.storage.upload_dir,
        app_settings.storage.allow_generic_binary,
    )
    return app_settings


_config: Optional[AppSettings] = None


def get_config() -> AppSettings:
    """Return the process-wide settings, loading them on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: Optional[AppSettings]) -> None:
    """Set (or clear) the process-wide settings."""
    global _config
    _config = config
