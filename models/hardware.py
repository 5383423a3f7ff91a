"""Domain models for devices and their latest readings."""

from __future__ import annotations

from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field, model_validator


class HardwareType(str, Enum):
    """Kind of physical device a reading describes."""

    TemperatureSensor = "TemperatureSensor"
    UninterruptiblePowerSupply = "UninterruptiblePowerSupply"


class SourceType(str, Enum):
    """Subsystem a reading was collected from."""

    OneWire = "OneWire"
    NetworkUpsTools = "NetworkUpsTools"


_ALLOWED_SOURCES: Dict[HardwareType, SourceType] = {
    HardwareType.TemperatureSensor: SourceType.OneWire,
    HardwareType.UninterruptiblePowerSupply: SourceType.NetworkUpsTools,
}


class HardwareInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    hardware_type: HardwareType


class SourceInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    source_type: SourceType


class DeviceIdentity(BaseModel):
    """Immutable identity of a device, serialized as the ``meta`` object."""

    model_config = ConfigDict(frozen=True)

    hw: HardwareInfo
    source: SourceInfo

    @model_validator(mode="after")
    def _check_source_matches_hardware(self) -> "DeviceIdentity":
        expected = _ALLOWED_SOURCES[self.hw.hardware_type]
        if self.source.source_type is not expected:
            raise ValueError(
                f"{self.hw.hardware_type.value} devices must come from "
                f"{expected.value}, not {self.source.source_type.value}"
            )
        return self

    @classmethod
    def temperature_sensor(cls, device_id: str) -> "DeviceIdentity":
        return cls(
            hw=HardwareInfo(id=device_id, hardware_type=HardwareType.TemperatureSensor),
            source=SourceInfo(source_type=SourceType.OneWire),
        )

    @classmethod
    def ups(cls, device_id: str) -> "DeviceIdentity":
        return cls(
            hw=HardwareInfo(
                id=device_id, hardware_type=HardwareType.UninterruptiblePowerSupply
            ),
            source=SourceInfo(source_type=SourceType.NetworkUpsTools),
        )

    @property
    def id(self) -> str:
        return self.hw.id

    @property
    def hardware_type(self) -> HardwareType:
        return self.hw.hardware_type

    @property
    def source_type(self) -> SourceType:
        return self.source.source_type


class SensorReading(BaseModel):
    """Latest known state of one temperature sensor."""

    model_config = ConfigDict(frozen=True)

    meta: DeviceIdentity
    temperature: float = Field(..., allow_inf_nan=False)
    resolution: int

    @model_validator(mode="after")
    def _check_hardware_type(self) -> "SensorReading":
        if self.meta.hardware_type is not HardwareType.TemperatureSensor:
            raise ValueError("SensorReading requires a TemperatureSensor identity")
        return self

    @property
    def id(self) -> str:
        return self.meta.id


class UpsReading(BaseModel):
    """Latest known variables of one UPS, values kept as returned by NUT."""

    model_config = ConfigDict(frozen=True)

    meta: DeviceIdentity
    variables: Dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_hardware_type(self) -> "UpsReading":
        if self.meta.hardware_type is not HardwareType.UninterruptiblePowerSupply:
            raise ValueError("UpsReading requires an UninterruptiblePowerSupply identity")
        return self

    @property
    def id(self) -> str:
        return self.meta.id


class Snapshot(BaseModel):
    """Point-in-time copy of the store; doubles as the push envelope."""

    sensors: List[SensorReading] = Field(default_factory=list)
    upses: List[UpsReading] = Field(default_factory=list)
