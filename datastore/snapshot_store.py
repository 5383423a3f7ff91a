from __future__ import annotations

from threading import Lock
from typing import Dict, Iterable, List, Optional

from models.hardware import HardwareType, SensorReading, Snapshot, UpsReading


class SnapshotStore:
    """Holds at most one reading per device id; newest write wins.

    Readings are immutable models replaced whole on every upsert, so a
    reader can never observe a half-updated device. Reads hand out deep
    copies so callers cannot reach back into the store.
    """

    def __init__(self) -> None:
        self._sensors: Dict[str, SensorReading] = {}
        self._upses: Dict[str, UpsReading] = {}
        self._lock = Lock()

    def upsert_sensor(self, reading: SensorReading) -> None:
        with self._lock:
            self._sensors[reading.id] = reading

    def upsert_ups(self, reading: UpsReading) -> None:
        with self._lock:
            self._upses[reading.id] = reading

    def remove_stale(self, hardware_type: HardwareType, present_ids: Iterable[str]) -> List[str]:
        """Drop entries of ``hardware_type`` whose id is not in ``present_ids``."""
        keep = set(present_ids)
        with self._lock:
            entries = self._entries_for(hardware_type)
            removed = [device_id for device_id in entries if device_id not in keep]
            for device_id in removed:
                del entries[device_id]
        return removed

    def snapshot(self) -> Snapshot:
        with self._lock:
            sensors = list(self._sensors.values())
            upses = list(self._upses.values())
        return Snapshot(
            sensors=[reading.model_copy(deep=True) for reading in sensors],
            upses=[reading.model_copy(deep=True) for reading in upses],
        )

    def snapshot_filtered(self, hardware_type: HardwareType, device_id: str) -> Snapshot:
        """Snapshot holding only ``device_id``; empty when the id is unknown."""
        with self._lock:
            reading = self._entries_for(hardware_type).get(device_id)
        if reading is None:
            return Snapshot()
        if hardware_type is HardwareType.TemperatureSensor:
            return Snapshot(sensors=[reading.model_copy(deep=True)])
        return Snapshot(upses=[reading.model_copy(deep=True)])

    def get_sensor(self, device_id: str) -> Optional[SensorReading]:
        snapshot = self.snapshot_filtered(HardwareType.TemperatureSensor, device_id)
        return snapshot.sensors[0] if snapshot.sensors else None

    def get_ups(self, device_id: str) -> Optional[UpsReading]:
        snapshot = self.snapshot_filtered(HardwareType.UninterruptiblePowerSupply, device_id)
        return snapshot.upses[0] if snapshot.upses else None

    def _entries_for(self, hardware_type: HardwareType) -> Dict:
        if hardware_type is HardwareType.TemperatureSensor:
            return self._sensors
        return self._upses
