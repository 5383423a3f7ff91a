from __future__ import annotations

import logging
from typing import Callable, List, Optional

import httpx

from datastore.snapshot_store import SnapshotStore
from models.config import AppConfig
from services.active_sender import ActiveSender
from services.config_loader import ConfigError
from services.one_wire_poller import OneWirePoller
from services.scheduler import Scheduler
from services.ups_poller import ServerClient, UpsPoller
from settings import get_settings
from sources.nut import NutServerClient
from sources.one_wire import OneWireDeviceReader

logger = logging.getLogger(__name__)


class Collector:
    """Owns the pollers, the sender and their scheduler.

    Disabled modules get no task at all, so their part of the snapshot
    simply stays empty.
    """

    def __init__(
        self,
        config: AppConfig,
        store: SnapshotStore,
        nut_client: Optional[ServerClient] = None,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        settings = get_settings()
        self.config = config
        self.store = store
        self.scheduler = Scheduler()
        self._cleanups: List[Callable[[], None]] = []

        one_wire = config.one_wire
        if one_wire.enabled:
            self.one_wire_poller: Optional[OneWirePoller] = OneWirePoller(
                OneWireDeviceReader(one_wire.base_path),
                store,
                evict_stale=one_wire.evict_stale,
            )
            self.scheduler.add("one-wire", one_wire.effective_cooldown, self.one_wire_poller.poll)
            self._cleanups.append(self.one_wire_poller.shutdown)
        else:
            self.one_wire_poller = None

        ups_monitoring = config.ups_monitoring
        if ups_monitoring.enabled:
            _check_unique_ups_ids(config)
            self.ups_poller: Optional[UpsPoller] = UpsPoller(
                ups_monitoring.servers,
                nut_client or NutServerClient(timeout=settings.nut_timeout),
                store,
                cooldown=ups_monitoring.effective_cooldown,
            )
            self.scheduler.add("ups", ups_monitoring.effective_cooldown, self.ups_poller.poll)
            self._cleanups.append(self.ups_poller.shutdown)
        else:
            self.ups_poller = None

        sender = config.active_data_sender
        if sender.enabled:
            self.active_sender: Optional[ActiveSender] = ActiveSender(
                sender.endpoints,
                store,
                ignore_connection_errors=sender.ignore_connection_errors,
                timeout=settings.http_timeout,
                client=http_client,
            )
            self.scheduler.add("active-sender", sender.effective_cooldown, self.active_sender.send)
            self._cleanups.append(self.active_sender.close)
        else:
            self.active_sender = None

    @property
    def task_names(self) -> List[str]:
        return [task.name for task in self.scheduler.tasks]

    def start(self) -> None:
        logger.info("Starting collector tasks: %s", ", ".join(self.task_names) or "none")
        self.scheduler.start()

    def stop(self) -> None:
        self.scheduler.stop()
        for cleanup in self._cleanups:
            cleanup()
        logger.info("Collector stopped")


def _check_unique_ups_ids(config: AppConfig) -> None:
    seen = set()
    for server in config.ups_monitoring.servers:
        for ups in server.upses:
            ups_id = server.ups_id(ups.name)
            if ups_id in seen:
                raise ConfigError(f"UPS {ups_id} is configured more than once.")
            seen.add(ups_id)
