from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


_CONFIG_FILE_ENV = "UDS_CONFIG_FILE"
_HTTP_TIMEOUT_ENV = "UDS_HTTP_TIMEOUT"
_NUT_TIMEOUT_ENV = "UDS_NUT_TIMEOUT"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    config_file: Path
    http_timeout: float
    nut_timeout: float
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_timeout(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        config_file=Path(_read_str_env(_CONFIG_FILE_ENV, "config.json")),
        http_timeout=_read_timeout(_HTTP_TIMEOUT_ENV, 5.0),
        nut_timeout=_read_timeout(_NUT_TIMEOUT_ENV, 1.0),
        log_level=_read_log_level("INFO"),
    )
