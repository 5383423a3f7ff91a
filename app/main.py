from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI

from app.api import health_router, router
from datastore.snapshot_store import SnapshotStore
from logging_config import configure_logging
from services.collector import Collector


def create_app(
    store: SnapshotStore,
    bearer_token: Optional[str] = None,
    collector: Optional[Collector] = None,
) -> FastAPI:
    """Build the passive endpoint around ``store``.

    When a ``collector`` is given its tasks run for the lifetime of the
    application.
    """

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        if collector is not None:
            collector.start()
        try:
            yield
        finally:
            if collector is not None:
                collector.stop()

    configure_logging()
    app = FastAPI(
        title="Universal Data Source",
        description="Latest 1-Wire temperature and UPS readings collected from this host.",
        version="2.4.0",
        lifespan=lifespan,
    )
    app.state.store = store
    app.state.bearer_token = bearer_token
    app.include_router(router)
    app.include_router(health_router)
    return app
