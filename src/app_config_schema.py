"""Dataclass schema objects used by runtime configuration loading."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_CONFIG_FILE = "config.toml"


class AppConfigurationError(Exception):
    """Raised when application configuration fails."""


@dataclass(frozen=True)
class ApiSettings:
    """REST API bind address and request defaults from `[api]`."""
    host: str = "127.0.0.1"
    port: int = 8000
    default_user_id: str = "local"
    cors_origins: tuple[str, ...] = ("http://127.0.0.1:8765", "http://localhost:8765")


@dataclass(frozen=True)
class StorageSettings:
    """Persistence backend selection from `[storage]`."""
    backend: str = "sqlite"
    path: str = ""


@dataclass(frozen=True)
class TimerSettings:
    """Session defaults and polling cadence from `[timer]`."""
    focus_minutes: int = 25
    break_minutes: int = 5
    preparation_seconds: int = 600
    tick_interval_seconds: float = 0.25
    restore_state: bool = True


@dataclass(frozen=True)
class UIServerSettings:
    """Built-in UI server settings from `[ui_server]`."""
    enabled: bool = True
    host: str = "127.0.0.1"
    port: int = 8765
    index_file: str = ""


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"


@dataclass(frozen=True)
class AppConfig:
    """Complete typed runtime configuration loaded from `config.toml`."""
    api: ApiSettings
    storage: StorageSettings
    timer: TimerSettings
    ui_server: UIServerSettings
    logging: LoggingSettings
    source_file: str
