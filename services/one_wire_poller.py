from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Dict, List, Protocol, Tuple

from datastore.snapshot_store import SnapshotStore
from models.hardware import DeviceIdentity, HardwareType, SensorReading
from sources.one_wire import OneWireReadError

logger = logging.getLogger(__name__)


class DeviceReader(Protocol):
    def list_device_ids(self) -> List[str]:
        ...

    def read(self, device_id: str) -> Tuple[float, int]:
        ...


class OneWirePoller:
    """Reads every listed device and upserts the readings into the store.

    A device that fails or times out is logged and skipped; the rest of
    the cycle carries on. A read still hanging from an earlier cycle is
    not submitted again, so one stuck device holds at most one worker.
    """

    def __init__(
        self,
        reader: DeviceReader,
        store: SnapshotStore,
        read_timeout: float = 2.0,
        evict_stale: bool = False,
        workers: int = 4,
    ) -> None:
        self.reader = reader
        self.store = store
        self.read_timeout = read_timeout
        self.evict_stale = evict_stale
        self.executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="one-wire")
        self._pending: Dict[str, Future] = {}

    def poll(self) -> List[SensorReading]:
        """Run one cycle and return the readings stored during it."""
        try:
            device_ids = self.reader.list_device_ids()
        except OSError as exc:
            logger.warning("Cannot list 1-Wire devices", extra={"reason": str(exc)})
            return []

        futures = []
        for device_id in device_ids:
            previous = self._pending.get(device_id)
            if previous is not None and not previous.done():
                logger.warning(
                    "Skipping device",
                    extra={"device_id": device_id, "reason": "previous read still running"},
                )
                continue
            future = self.executor.submit(self.reader.read, device_id)
            self._pending[device_id] = future
            futures.append((device_id, future))

        readings: List[SensorReading] = []
        for device_id, future in futures:
            try:
                temperature, resolution = future.result(timeout=self.read_timeout)
                reading = SensorReading(
                    meta=DeviceIdentity.temperature_sensor(device_id),
                    temperature=temperature,
                    resolution=resolution,
                )
            except FutureTimeoutError:
                future.cancel()
                logger.warning(
                    "Skipping device",
                    extra={"device_id": device_id, "reason": "read timed out"},
                )
                continue
            except (OneWireReadError, OSError, ValueError) as exc:
                logger.warning(
                    "Skipping device", extra={"device_id": device_id, "reason": str(exc)}
                )
                continue

            self.store.upsert_sensor(reading)
            readings.append(reading)

        for device_id in [key for key, future in self._pending.items() if future.done()]:
            del self._pending[device_id]

        if self.evict_stale:
            removed = self.store.remove_stale(HardwareType.TemperatureSensor, device_ids)
            for device_id in removed:
                logger.info("Evicted sensor no longer on the bus", extra={"device_id": device_id})

        logger.debug("Polled %d/%d 1-Wire devices", len(readings), len(device_ids))
        return readings

    def shutdown(self) -> None:
        self.executor.shutdown(wait=False, cancel_futures=True)
