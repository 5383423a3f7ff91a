"""Pushes the current snapshot to every configured HTTP endpoint."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

import httpx

from datastore.snapshot_store import SnapshotStore
from models.config import Endpoint

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeliveryResult:
    url: str
    status_code: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.status_code is not None and 200 <= self.status_code < 300


class ActiveSender:
    """Best-effort delivery: each endpoint is attempted independently every cycle.

    Non-2xx responses are logged as warnings. Connection failures are
    logged at ERROR, or at DEBUG when ``ignore_connection_errors`` is set;
    either way the remaining endpoints are still attempted and the task
    keeps running.
    """

    def __init__(
        self,
        endpoints: Iterable[Endpoint],
        store: SnapshotStore,
        ignore_connection_errors: bool = False,
        timeout: float = 5.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.endpoints = list(endpoints)
        self.store = store
        self.ignore_connection_errors = ignore_connection_errors
        self._client = client or httpx.Client(timeout=timeout)
        self.executor = ThreadPoolExecutor(
            max_workers=max(len(self.endpoints), 1), thread_name_prefix="sender"
        )

    def send(self) -> List[DeliveryResult]:
        """Run one cycle: snapshot, serialize once, post to every endpoint."""
        payload = self.store.snapshot().model_dump(mode="json")
        futures = [
            self.executor.submit(self._deliver, endpoint, payload) for endpoint in self.endpoints
        ]
        return [future.result() for future in futures]

    def close(self) -> None:
        self.executor.shutdown(wait=True, cancel_futures=True)
        self._client.close()

    def _deliver(self, endpoint: Endpoint, payload: Dict) -> DeliveryResult:
        headers = {}
        if endpoint.bearer_token:
            headers["Authorization"] = f"Bearer {endpoint.bearer_token}"

        try:
            response = self._client.post(endpoint.url, json=payload, headers=headers)
        except httpx.TransportError as exc:
            level = logging.DEBUG if self.ignore_connection_errors else logging.ERROR
            logger.log(
                level,
                "Connection to endpoint failed",
                extra={"endpoint": endpoint.url, "reason": f"{type(exc).__name__}: {exc}"},
            )
            return DeliveryResult(url=endpoint.url, error=str(exc) or type(exc).__name__)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.error(
                "Delivery to endpoint failed",
                extra={"endpoint": endpoint.url, "reason": f"{type(exc).__name__}: {exc}"},
            )
            return DeliveryResult(url=endpoint.url, error=str(exc) or type(exc).__name__)

        if not response.is_success:
            logger.warning(
                "Endpoint rejected readings",
                extra={"endpoint": endpoint.url, "status_code": response.status_code},
            )
        else:
            logger.debug(
                "Delivered readings",
                extra={"endpoint": endpoint.url, "status_code": response.status_code},
            )
        return DeliveryResult(url=endpoint.url, status_code=response.status_code)
