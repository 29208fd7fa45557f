from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from functools import lru_cache
from pathlib import Path
from typing import Any
import os

import yaml

CONFIG_ENV = "RESERVATION_ENGINE_CONFIG"
DATA_DIR_ENV = "RESERVATION_ENGINE_DATA_DIR"
LOG_LEVEL_ENV = "RESERVATION_ENGINE_LOG_LEVEL"
HOLIDAY_COUNTRY_ENV = "RESERVATION_ENGINE_HOLIDAY_COUNTRY"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class Settings:
    data_dir: Path = Path("data")
    log_level: str = "INFO"
    store_retry_attempts: int = 3
    store_retry_backoff_seconds: float = 0.05
    holiday_country: str | None = None
    terms: dict[str, tuple[date, date]] = field(default_factory=dict)
    elevated_roles: tuple[str, ...] = ("faculty", "admin")

    def __post_init__(self) -> None:
        if self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}")
        if self.store_retry_attempts < 1:
            raise ValueError("store_retry_attempts must be at least 1")
        if self.store_retry_backoff_seconds < 0:
            raise ValueError("store_retry_backoff_seconds must not be negative")
        for tag, (start, end) in self.terms.items():
            if start > end:
                raise ValueError(f"term {tag!r} starts after it ends")


def load_settings(path: str | Path | None = None) -> Settings:
    """Build settings from an optional YAML file plus environment overrides."""
    config_path = path or os.environ.get(CONFIG_ENV)
    raw: dict[str, Any] = {}
    if config_path:
        try:
            payload = yaml.safe_load(Path(config_path).read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as error:
            raise ValueError(f"Failed to read configuration file: {config_path}") from error
        if payload is not None and not isinstance(payload, dict):
            raise ValueError("top-level configuration must be a mapping")
        raw = payload or {}

    if os.environ.get(DATA_DIR_ENV):
        raw["data_dir"] = os.environ[DATA_DIR_ENV]
    if os.environ.get(LOG_LEVEL_ENV):
        raw["log_level"] = os.environ[LOG_LEVEL_ENV]
    if os.environ.get(HOLIDAY_COUNTRY_ENV):
        raw["holiday_country"] = os.environ[HOLIDAY_COUNTRY_ENV]

    return settings_from_dict(raw)


def settings_from_dict(raw: dict[str, Any]) -> Settings:
    defaults = Settings()
    elevated_roles = raw.get("elevated_roles", defaults.elevated_roles)
    if isinstance(elevated_roles, str):
        elevated_roles = [elevated_roles]

    return Settings(
        data_dir=Path(str(raw.get("data_dir", defaults.data_dir))),
        log_level=str(raw.get("log_level", defaults.log_level)).upper(),
        store_retry_attempts=int(raw.get("store_retry_attempts", defaults.store_retry_attempts)),
        store_retry_backoff_seconds=float(raw.get("store_retry_backoff_seconds", defaults.store_retry_backoff_seconds)),
        holiday_country=(str(raw["holiday_country"]) if raw.get("holiday_country") else None),
        terms=_parse_terms(raw.get("terms") or {}),
        elevated_roles=tuple(str(role).strip().lower() for role in elevated_roles),
    )


def _parse_terms(raw_terms: Any) -> dict[str, tuple[date, date]]:
    if not isinstance(raw_terms, dict):
        raise ValueError("terms must be a mapping of term tag to {start, end}")

    terms: dict[str, tuple[date, date]] = {}
    for tag, bounds in raw_terms.items():
        if not isinstance(bounds, dict) or "start" not in bounds or "end" not in bounds:
            raise ValueError(f"term {tag!r} needs both start and end dates")
        terms[str(tag).strip()] = (_as_date(bounds["start"]), _as_date(bounds["end"]))
    return terms


def _as_date(value: Any) -> date:
    # PyYAML already turns unquoted ISO dates into date objects.
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as error:
        raise ValueError(f"invalid term date: {value!r}") from error


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
