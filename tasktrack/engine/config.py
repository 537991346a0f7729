"""
TaskTrack Configuration — Load and validate tasktrack.yaml at startup.

Usage:
    from tasktrack.engine.config import load_config, get_config
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from tasktrack.engine.errors import TaskTrackConfigError

CONFIG_FILENAME = "tasktrack.yaml"
CONFIG_PATH_ENV = "TASKTRACK_CONFIG"


# ---------------------------------------------------------------------------
# Pydantic models for tasktrack.yaml
# ---------------------------------------------------------------------------

class DatabaseConfig(BaseModel):
    url: str = "sqlite:///tasktrack.db"
    echo: bool = False
    pool_size: int = 10
    max_overflow: int = 20
    pool_timeout: int = 30
    pool_recycle: int = 1800
    pool_pre_ping: bool = True


class SecurityConfig(BaseModel):
    secret_key: str = "tasktrack-dev-key-change-in-production"
    token_ttl: int = 7 * 24 * 3600
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)
    allow_admin_signup: bool = False


class LogAsyncQueueConfig(BaseModel):
    flush_interval_ms: int = 100
    flush_batch_size: int = 50
    max_queue_size: int = 10000


class LoggingConfig(BaseModel):
    level: str = "INFO"
    enabled: bool = True
    directory: str = ".tasktrack/logs"
    async_queue: LogAsyncQueueConfig = LogAsyncQueueConfig()

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"invalid log level '{v}'")
        return v


class NotificationsConfig(BaseModel):
    enabled: bool = False
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    timeout: float = 15.0
    sender: str = "TaskTrack <no-reply@tasktrack.local>"

    @property
    def is_configured(self) -> bool:
        return self.enabled and bool(self.base_url)


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 5000
    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:5173"]
    )


class TaskTrackConfig(BaseModel):
    """Root model for tasktrack.yaml."""
    name: str = "TaskTrack"
    environment: str = "dev"
    timezone: str = "UTC"

    database: DatabaseConfig = DatabaseConfig()
    security: SecurityConfig = SecurityConfig()
    logging: LoggingConfig = LoggingConfig()
    notifications: NotificationsConfig = NotificationsConfig()
    server: ServerConfig = ServerConfig()

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        if v not in ("dev", "staging", "prod"):
            raise ValueError(f"environment must be dev/staging/prod, got '{v}'")
        return v

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"unknown time zone '{v}'")
        return v

    @property
    def tzinfo(self) -> ZoneInfo:
        """Reference time zone used for "today" and week windows."""
        return ZoneInfo(self.timezone)


# ---------------------------------------------------------------------------
# Config Loading Functions
# ---------------------------------------------------------------------------

_config: Optional[TaskTrackConfig] = None


def _find_project_root() -> Path:
    """Find the project root by looking for tasktrack.yaml."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        if (parent / CONFIG_FILENAME).exists():
            return parent
    return current


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    """TASKTRACK_* environment variables win over the file."""
    secret = os.environ.get("TASKTRACK_SECRET_KEY")
    if secret:
        data.setdefault("security", {})["secret_key"] = secret
    db_url = os.environ.get("TASKTRACK_DATABASE_URL")
    if db_url:
        data.setdefault("database", {})["url"] = db_url
    return data


def load_config(config_path: Optional[str] = None) -> TaskTrackConfig:
    """
    Load and validate tasktrack.yaml.

    Args:
        config_path: Explicit path to tasktrack.yaml. If None, uses
                     $TASKTRACK_CONFIG when set, else auto-discovers.

    Returns:
        Validated TaskTrackConfig instance. Defaults when no file exists.

    Raises:
        TaskTrackConfigError: If the file is not valid YAML or fails validation.
    """
    global _config

    if config_path is None:
        config_path = os.environ.get(CONFIG_PATH_ENV) or str(
            _find_project_root() / CONFIG_FILENAME
        )

    raw: Dict[str, Any] = {}
    path = Path(config_path)
    if path.exists():
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise TaskTrackConfigError(f"Invalid YAML in {path}: {e}", path=str(path))
        if not isinstance(raw, dict):
            raise TaskTrackConfigError(f"{path} must contain a mapping", path=str(path))

    # Flatten the top-level "app" key if present
    app_data = raw.pop("app", {}) or {}
    for key in ("name", "environment", "timezone"):
        if key in app_data and key not in raw:
            raw[key] = app_data[key]

    try:
        _config = TaskTrackConfig(**_apply_env_overrides(raw))
    except ValidationError as e:
        raise TaskTrackConfigError(f"Invalid configuration: {e}", path=str(path))
    return _config


def get_config() -> TaskTrackConfig:
    """Get the currently loaded config, loading if necessary."""
    global _config
    if _config is None:
        _config = load_config()
    return _config
