"""Typed parser for config.toml sections into immutable app settings."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

from app_config_schema import (
    ApiSettings,
    AppConfig,
    AppConfigurationError,
    LoggingSettings,
    StorageSettings,
    TimerSettings,
    UIServerSettings,
)

_ALLOWED_STORAGE_BACKENDS = {"sqlite", "json"}
_ALLOWED_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
_DEFAULT_STORAGE_FILES = {"sqlite": "data/pomorange.db", "json": "data/pomorange.json"}


def parse_app_config(
    raw: Mapping[str, Any],
    *,
    base_dir: Path,
    source_file: str,
) -> AppConfig:
    """Parse raw TOML mappings into strongly typed application settings."""
    return AppConfig(
        api=_parse_api_settings(_section(raw, "api")),
        storage=_parse_storage_settings(_section(raw, "storage"), base_dir=base_dir),
        timer=_parse_timer_settings(_section(raw, "timer")),
        ui_server=_parse_ui_server_settings(_section(raw, "ui_server"), base_dir=base_dir),
        logging=_parse_logging_settings(_section(raw, "logging")),
        source_file=source_file,
    )


def _parse_api_settings(section: Mapping[str, Any]) -> ApiSettings:
    default_user_id = _as_str(
        section.get("default_user_id", "local"),
        "api.default_user_id",
    )
    if not default_user_id:
        raise AppConfigurationError("api.default_user_id cannot be empty.")
    cors_origins = (
        _as_str_tuple(section.get("cors_origins"), "api.cors_origins")
        if "cors_origins" in section
        else ApiSettings.cors_origins
    )
    return ApiSettings(
        host=_as_str(section.get("host", "127.0.0.1"), "api.host"),
        port=_as_port(section.get("port", 8000), "api.port"),
        default_user_id=default_user_id,
        cors_origins=cors_origins,
    )


def _parse_storage_settings(
    section: Mapping[str, Any],
    *,
    base_dir: Path,
) -> StorageSettings:
    backend = _as_choice(
        section.get("backend", "sqlite"),
        "storage.backend",
        _ALLOWED_STORAGE_BACKENDS,
    )
    path = _as_str(section.get("path", ""), "storage.path") or _DEFAULT_STORAGE_FILES[backend]
    return StorageSettings(
        backend=backend,
        path=_resolve_path(base_dir, path),
    )


def _parse_timer_settings(section: Mapping[str, Any]) -> TimerSettings:
    focus_minutes = _as_int(section.get("focus_minutes", 25), "timer.focus_minutes")
    break_minutes = _as_int(section.get("break_minutes", 5), "timer.break_minutes")
    preparation_seconds = _as_int(
        section.get("preparation_seconds", 600),
        "timer.preparation_seconds",
    )
    tick_interval = _as_float(
        section.get("tick_interval_seconds", 0.25),
        "timer.tick_interval_seconds",
    )
    _require_range(focus_minutes, 1, 120, "timer.focus_minutes")
    _require_range(break_minutes, 1, 60, "timer.break_minutes")
    if preparation_seconds <= 0:
        raise AppConfigurationError("timer.preparation_seconds must be greater than zero.")
    if not 0 < tick_interval <= 5:
        raise AppConfigurationError("timer.tick_interval_seconds must be in (0, 5].")
    return TimerSettings(
        focus_minutes=focus_minutes,
        break_minutes=break_minutes,
        preparation_seconds=preparation_seconds,
        tick_interval_seconds=tick_interval,
        restore_state=_as_bool(section.get("restore_state", True), "timer.restore_state"),
    )


def _parse_ui_server_settings(
    section: Mapping[str, Any],
    *,
    base_dir: Path,
) -> UIServerSettings:
    index_file = _as_str(section.get("index_file", ""), "ui_server.index_file")
    return UIServerSettings(
        enabled=_as_bool(section.get("enabled", True), "ui_server.enabled"),
        host=_as_str(section.get("host", "127.0.0.1"), "ui_server.host"),
        port=_as_port(section.get("port", 8765), "ui_server.port"),
        index_file=_resolve_path(base_dir, index_file) if index_file else "",
    )


def _parse_logging_settings(section: Mapping[str, Any]) -> LoggingSettings:
    level = _as_str(section.get("level", "INFO"), "logging.level").upper()
    if level not in _ALLOWED_LOG_LEVELS:
        allowed = ", ".join(sorted(_ALLOWED_LOG_LEVELS))
        raise AppConfigurationError(f"logging.level must be one of: {allowed}.")
    return LoggingSettings(level=level)


def _section(root: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    raw = root.get(name, {})
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise AppConfigurationError(f"[{name}] must be a table.")
    return raw


def _as_str(value: Any, field: str) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    raise AppConfigurationError(f"{field} must be a string.")


def _as_str_tuple(value: Any, field: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, (list, tuple)):
        raise AppConfigurationError(f"{field} must be a list of strings.")
    items = tuple(_as_str(item, field) for item in value)
    return tuple(item for item in items if item)


def _as_bool(value: Any, field: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes", "on"):
            return True
        if lowered in ("false", "0", "no", "off"):
            return False
    raise AppConfigurationError(f"{field} must be a boolean.")


def _as_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise AppConfigurationError(f"{field} must be an integer.")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as error:
            raise AppConfigurationError(f"{field} must be an integer.") from error
    raise AppConfigurationError(f"{field} must be an integer.")


def _as_float(value: Any, field: str) -> float:
    if isinstance(value, bool):
        raise AppConfigurationError(f"{field} must be a float.")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError as error:
            raise AppConfigurationError(f"{field} must be a float.") from error
    raise AppConfigurationError(f"{field} must be a float.")


def _as_port(value: Any, field: str) -> int:
    port = _as_int(value, field)
    _require_range(port, 1, 65535, field)
    return port


def _as_choice(value: Any, field: str, allowed: set[str]) -> str:
    name = _as_str(value, field).lower()
    if name not in allowed:
        joined = ", ".join(sorted(allowed))
        raise AppConfigurationError(f"{field} must be one of: {joined}.")
    return name


def _require_range(value: int, low: int, high: int, field: str) -> None:
    if not low <= value <= high:
        raise AppConfigurationError(f"{field} must be in [{low}, {high}], got: {value}")


def _resolve_path(base_dir: Path, raw: str) -> str:
    if not raw:
        return ""
    path = Path(raw).expanduser()
    if not path.is_absolute():
        path = (base_dir / path).resolve()
    return str(path)
