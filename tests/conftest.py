from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

import pytest

from datastore.snapshot_store import SnapshotStore
from models.hardware import DeviceIdentity, SensorReading, UpsReading
from settings import get_settings

DEVICE_ID = "28-00000a0b0c0d"


def make_sensor(device_id: str = DEVICE_ID, temperature: float = 1.234, resolution: int = 12) -> SensorReading:
    return SensorReading(
        meta=DeviceIdentity.temperature_sensor(device_id),
        temperature=temperature,
        resolution=resolution,
    )


def make_ups(device_id: str = "[ups1]monitor@localhost:3493", variables: Optional[Dict[str, str]] = None) -> UpsReading:
    return UpsReading(
        meta=DeviceIdentity.ups(device_id),
        variables=variables if variables is not None else {"battery.charge": "100", "ups.load": "15"},
    )


def write_device(base: Path, device_id: str, temperature: str = "1234", resolution: str = "12") -> Path:
    device_dir = base / device_id
    device_dir.mkdir(parents=True)
    (device_dir / "temperature").write_text(temperature)
    (device_dir / "resolution").write_text(resolution)
    return device_dir


@pytest.fixture()
def store() -> SnapshotStore:
    return SnapshotStore()


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
