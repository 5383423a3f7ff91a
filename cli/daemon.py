"""Foreground runner for the collector.

With the passive endpoint enabled, uvicorn serves the API and the app
lifespan drives the collector. Otherwise the collector runs until
SIGINT or SIGTERM.
"""

from __future__ import annotations

import logging
import signal
import threading

import uvicorn

from app.main import create_app
from datastore.snapshot_store import SnapshotStore
from models.config import AppConfig
from services.collector import Collector

logger = logging.getLogger(__name__)


def run_until_shutdown(collector: Collector, shutdown: threading.Event) -> None:
    """Start the collector, block until *shutdown* is set, then stop it."""
    collector.start()
    try:
        shutdown.wait()
    finally:
        collector.stop()


def _install_signal_handlers(shutdown: threading.Event) -> None:
    def _on_signal(signum: int, frame) -> None:
        logger.info("Received signal %d, shutting down", signum)
        shutdown.set()

    signal.signal(signal.SIGINT, _on_signal)
    signal.signal(signal.SIGTERM, _on_signal)


def run(config: AppConfig) -> None:
    store = SnapshotStore()
    collector = Collector(config, store)
    passive = config.passive_data_endpoint

    if passive.enabled:
        logger.info("Serving passive endpoint on %s:%d", passive.host, passive.port)
        app = create_app(store, bearer_token=passive.bearer_token, collector=collector)
        uvicorn.run(app, host=passive.host, port=passive.port, log_config=None)
        return

    shutdown = threading.Event()
    _install_signal_handlers(shutdown)
    run_until_shutdown(collector, shutdown)
