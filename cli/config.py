from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from models.config import DEFAULT_PASSIVE_PORT

DEFAULT_BASE_URL = f"http://localhost:{DEFAULT_PASSIVE_PORT}"
DEFAULT_TIMEOUT = 10.0

_BASE_URL_ENV = "UDS_API_BASE_URL"
_TOKEN_ENV = "UDS_API_TOKEN"
_TIMEOUT_ENV = "UDS_API_TIMEOUT"


@dataclass(frozen=True)
class CLIConfig:
    base_url: str = DEFAULT_BASE_URL
    token: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT


def _read_float(value: Optional[str], default: float) -> float:
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


def load_config(
    base_url: Optional[str] = None,
    token: Optional[str] = None,
    timeout: Optional[float] = None,
) -> CLIConfig:
    url = base_url or os.getenv(_BASE_URL_ENV) or DEFAULT_BASE_URL
    if token is None:
        token = (os.getenv(_TOKEN_ENV) or "").strip() or None
    if timeout is None:
        timeout = _read_float(os.getenv(_TIMEOUT_ENV), DEFAULT_TIMEOUT)
    return CLIConfig(base_url=url.rstrip("/"), token=token, timeout=timeout)
