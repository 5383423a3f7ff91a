from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Union

from pydantic import ValidationError

from models.config import AppConfig, example_config

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Configuration is missing or invalid; raised before any task starts."""


def write_example_config(path: Union[str, Path], overwrite: bool = False) -> bool:
    """Write the example config to ``path``; returns False if it already exists."""
    target = Path(path)
    if target.exists() and not overwrite:
        return False
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = example_config().model_dump(mode="json")
    target.write_text(json.dumps(payload, indent=4) + "\n", encoding="utf-8")
    return True


def load_config(path: Union[str, Path]) -> AppConfig:
    """Read and validate the config file.

    A missing file is replaced by the example config so operators have a
    template to edit; startup still fails until they do.

    Raises:
        ConfigError: If the file is missing, unreadable, or invalid.
    """
    source = Path(path)
    if not source.exists():
        if write_example_config(source):
            raise ConfigError(
                f"No config found; wrote an example to {source}. Edit it and start again."
            )
        raise ConfigError(f"Config file {source} does not exist.")

    try:
        raw = json.loads(source.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {source}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file {source} is not valid JSON: {exc}") from exc

    try:
        config = AppConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"Config file {source} is invalid:\n{exc}") from exc

    logger.debug("Loaded config from %s", source)
    return config
