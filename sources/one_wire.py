from __future__ import annotations

import math
import re
from pathlib import Path
from typing import List, Tuple, Union

DEVICE_ID_PATTERN = re.compile(r"^[0-9a-f]{2}-[0-9a-f]{12}$")

_TEMPERATURE_FILE = "temperature"
_RESOLUTION_FILE = "resolution"


class OneWireReadError(Exception):
    """Raised when a device is missing or reports an unusable value."""


class OneWireDeviceReader:
    def __init__(self, base_path: Union[str, Path]) -> None:
        self.base_path = Path(base_path)

    def list_device_ids(self) -> List[str]:
        """Return ids of the temperature sensors currently on the bus.

        A missing base path yields an empty list rather than an error so a
        bus that is not mounted yet behaves like a bus with no devices.
        """
        if not self.base_path.is_dir():
            return []
        ids = []
        for entry in self.base_path.iterdir():
            if not DEVICE_ID_PATTERN.match(entry.name):
                continue
            if not entry.is_dir():
                continue
            if not (entry / _TEMPERATURE_FILE).is_file():
                continue
            if not (entry / _RESOLUTION_FILE).is_file():
                continue
            ids.append(entry.name)
        return sorted(ids)

    def read(self, device_id: str) -> Tuple[float, int]:
        device_dir = self.base_path / device_id
        raw_temperature = self._read_value(device_dir / _TEMPERATURE_FILE, device_id)
        raw_resolution = self._read_value(device_dir / _RESOLUTION_FILE, device_id)

        try:
            temperature = int(raw_temperature) / 1000
        except ValueError:
            try:
                temperature = float(raw_temperature) / 1000
            except ValueError as exc:
                raise OneWireReadError(
                    f"Device {device_id!r} reported invalid temperature {raw_temperature!r}."
                ) from exc
        if not math.isfinite(temperature):
            raise OneWireReadError(
                f"Device {device_id!r} reported non-finite temperature {raw_temperature!r}."
            )

        try:
            resolution = int(raw_resolution)
        except ValueError as exc:
            raise OneWireReadError(
                f"Device {device_id!r} reported invalid resolution {raw_resolution!r}."
            ) from exc

        return temperature, resolution

    @staticmethod
    def _read_value(path: Path, device_id: str) -> str:
        try:
            return path.read_text(encoding="ascii").strip()
        except (OSError, UnicodeDecodeError) as exc:
            raise OneWireReadError(f"Cannot read {path.name} of device {device_id!r}: {exc}") from exc
