from __future__ import annotations

import json
from pathlib import Path

import pytest

from models.config import AppConfig
from services.config_loader import ConfigError, load_config, write_example_config


def test_missing_file_writes_example_and_fails(tmp_path: Path) -> None:
    path = tmp_path / "config.json"

    with pytest.raises(ConfigError, match="wrote an example"):
        load_config(path)

    assert path.exists()
    example = load_config(path)
    assert example.one_wire.enabled
    assert example.ups_monitoring.servers[0].server_id == "ups-monitor@localhost:3493"
    assert len(example.active_data_sender.endpoints) == 2
    assert example.passive_data_endpoint.port == 63623


def test_example_is_indented_with_four_spaces(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    write_example_config(path)

    assert '\n    "one_wire": {' in path.read_text()
    assert write_example_config(path) is False


def test_sections_default_to_disabled(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{}")

    config = load_config(path)

    assert config == AppConfig()
    assert not config.one_wire.enabled
    assert not config.ups_monitoring.enabled
    assert not config.active_data_sender.enabled
    assert not config.passive_data_endpoint.enabled


def test_legacy_duration_objects_accepted(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "one_wire": {"enabled": True, "cooldown": {"secs": 2, "nanos": 500000000}},
                "active_data_sender": {"cooldown": 15},
            }
        )
    )

    config = load_config(path)

    assert config.one_wire.cooldown == 2.5
    assert config.active_data_sender.cooldown == 15.0


def test_invalid_json_raises(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{not json")

    with pytest.raises(ConfigError, match="not valid JSON"):
        load_config(path)


def test_malformed_server_entry_raises(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {"ups_monitoring": {"enabled": True, "servers": [{"host": "", "port": 70000, "upses": []}]}}
        )
    )

    with pytest.raises(ConfigError, match="invalid"):
        load_config(path)


@pytest.mark.parametrize("url", ["http://[::1", "ftp://panel.lan/data", "panel.lan/data"])
def test_malformed_endpoint_url_rejected_at_load(tmp_path: Path, url: str) -> None:
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps({"active_data_sender": {"enabled": True, "endpoints": [{"url": url}]}})
    )

    with pytest.raises(ConfigError, match="invalid"):
        load_config(path)
