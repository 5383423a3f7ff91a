"""Unit tests for device identities and the push envelope."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from models.hardware import (
    DeviceIdentity,
    HardwareInfo,
    HardwareType,
    SourceInfo,
    SourceType,
    SensorReading,
    Snapshot,
    UpsReading,
)
from conftest import make_sensor, make_ups


def test_identity_rejects_mismatched_source() -> None:
    with pytest.raises(ValidationError):
        DeviceIdentity(
            hw=HardwareInfo(id="x", hardware_type=HardwareType.TemperatureSensor),
            source=SourceInfo(source_type=SourceType.NetworkUpsTools),
        )


def test_identity_is_immutable() -> None:
    identity = DeviceIdentity.temperature_sensor("28-00000a0b0c0d")

    with pytest.raises(ValidationError):
        identity.hw = HardwareInfo(id="other", hardware_type=HardwareType.TemperatureSensor)  # type: ignore[misc]


def test_readings_require_matching_hardware_type() -> None:
    with pytest.raises(ValidationError):
        SensorReading(meta=DeviceIdentity.ups("[ups1]localhost:3493"), temperature=1.0, resolution=12)
    with pytest.raises(ValidationError):
        UpsReading(meta=DeviceIdentity.temperature_sensor("28-00000a0b0c0d"), variables={})


def test_sensor_reading_serializes_to_envelope_shape() -> None:
    payload = make_sensor().model_dump(mode="json")

    assert payload == {
        "meta": {
            "hw": {"id": "28-00000a0b0c0d", "hardware_type": "TemperatureSensor"},
            "source": {"source_type": "OneWire"},
        },
        "temperature": 1.234,
        "resolution": 12,
    }


def test_empty_snapshot_keeps_both_keys_as_arrays() -> None:
    assert json.loads(Snapshot().model_dump_json()) == {"sensors": [], "upses": []}


def test_snapshot_envelope_contains_ups_variables() -> None:
    snapshot = Snapshot(upses=[make_ups(variables={"ups.status": "OL"})])

    body = json.loads(snapshot.model_dump_json())

    assert body["sensors"] == []
    assert body["upses"][0]["meta"]["hw"]["hardware_type"] == "UninterruptiblePowerSupply"
    assert body["upses"][0]["meta"]["source"]["source_type"] == "NetworkUpsTools"
    assert body["upses"][0]["variables"] == {"ups.status": "OL"}


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
def test_sensor_reading_rejects_non_finite_temperature(value: float) -> None:
    with pytest.raises(ValidationError):
        make_sensor(temperature=value)
