"""Polling cycle for UPSes behind Network UPS Tools servers."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Protocol

from datastore.snapshot_store import SnapshotStore
from models.config import NutServerConfig
from models.hardware import DeviceIdentity, UpsReading
from sources.nut import NutConnectionError, NutError, NutResponseError

logger = logging.getLogger(__name__)

MAX_RECONNECT_BACKOFF = 3600.0


class Connection(Protocol):
    closed: bool

    def server_version(self) -> str:
        ...

    def query(self, ups_name: str, variable_names: Iterable[str]) -> Dict[str, str]:
        ...

    def close(self) -> None:
        ...


class ServerClient(Protocol):
    def connect(
        self,
        host: str,
        port: int,
        tls: bool = False,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> Connection:
        ...


@dataclass
class _ServerState:
    config: NutServerConfig
    connection: Optional[Connection] = None
    failed_attempts: int = 0
    next_attempt_at: float = 0.0


class UpsPoller:
    """Queries every configured UPS once per cycle.

    Servers are processed in parallel and isolated from each other: a
    server that cannot be reached is skipped for the cycle. Its
    connection is re-established on a later cycle, backing off by
    ``cooldown * failures`` (capped at one hour) between attempts.
    Connections are owned by this poller and reused across cycles.
    """

    def __init__(
        self,
        servers: Iterable[NutServerConfig],
        client: ServerClient,
        store: SnapshotStore,
        cooldown: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        self.store = store
        self.cooldown = cooldown
        self._clock = clock
        self._states = [_ServerState(config=server) for server in servers]
        self.executor = ThreadPoolExecutor(
            max_workers=max(len(self._states), 1), thread_name_prefix="nut"
        )

    def poll(self) -> List[UpsReading]:
        futures = [self.executor.submit(self._poll_server, state) for state in self._states]
        readings: List[UpsReading] = []
        for future in futures:
            readings.extend(future.result())
        return readings

    def shutdown(self) -> None:
        self.executor.shutdown(wait=True, cancel_futures=True)
        for state in self._states:
            self._drop_connection(state)

    def _poll_server(self, state: _ServerState) -> List[UpsReading]:
        server = state.config
        connection = self._ensure_connection(state)
        if connection is None:
            return []

        readings: List[UpsReading] = []
        for ups in server.upses:
            ups_id = server.ups_id(ups.name)
            try:
                variables = connection.query(ups.name, ups.variables)
            except NutError as exc:
                logger.warning(
                    "Connection lost while querying UPS; retrying next cycle",
                    extra={"server_id": server.server_id, "ups_name": ups.name, "reason": str(exc)},
                )
                self._drop_connection(state)
                break

            reading = UpsReading(meta=DeviceIdentity.ups(ups_id), variables=variables)
            self.store.upsert_ups(reading)
            readings.append(reading)
        return readings

    def _ensure_connection(self, state: _ServerState) -> Optional[Connection]:
        server = state.config
        if state.connection is not None and not state.connection.closed:
            try:
                state.connection.server_version()
                return state.connection
            except (NutConnectionError, NutResponseError, OSError) as exc:
                logger.info(
                    "Cached connection is stale, reconnecting",
                    extra={"server_id": server.server_id, "reason": str(exc)},
                )
                self._drop_connection(state)

        now = self._clock()
        if now < state.next_attempt_at:
            logger.debug("Waiting before reconnecting", extra={"server_id": server.server_id})
            return None

        try:
            state.connection = self.client.connect(
                server.host,
                server.port,
                tls=server.enable_tls,
                username=server.username,
                password=server.password,
            )
        except (NutError, OSError) as exc:
            state.failed_attempts += 1
            backoff = min(self.cooldown * state.failed_attempts, MAX_RECONNECT_BACKOFF)
            state.next_attempt_at = now + backoff
            logger.warning(
                "Cannot connect to NUT server",
                extra={"server_id": server.server_id, "reason": str(exc)},
            )
            return None

        if state.failed_attempts:
            logger.info("Reconnected to NUT server", extra={"server_id": server.server_id})
        else:
            logger.debug("Connected to NUT server", extra={"server_id": server.server_id})
        state.failed_attempts = 0
        state.next_attempt_at = 0.0
        return state.connection

    @staticmethod
    def _drop_connection(state: _ServerState) -> None:
        connection, state.connection = state.connection, None
        if connection is None:
            return
        try:
            connection.close()
        except OSError:
            pass
