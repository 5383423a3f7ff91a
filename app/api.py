"""Read-only HTTP routes serving the cached readings."""

from __future__ import annotations

import secrets
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from datastore.snapshot_store import SnapshotStore
from models.hardware import HardwareType, SensorReading, UpsReading

_bearer = HTTPBearer(auto_error=False)


def get_store(request: Request) -> SnapshotStore:
    return request.app.state.store


def require_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> None:
    """Reject the request unless it carries the configured bearer token."""
    expected: Optional[str] = request.app.state.bearer_token
    if not expected:
        return
    if credentials is None or not secrets.compare_digest(
        credentials.credentials.encode("utf-8"), expected.encode("utf-8")
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid bearer token.",
            headers={"WWW-Authenticate": "Bearer"},
        )


router = APIRouter(dependencies=[Depends(require_token)])


@router.get(
    "/temperature",
    response_model=List[SensorReading],
    summary="Latest reading of every temperature sensor.",
)
async def list_temperature_sensors(
    store: SnapshotStore = Depends(get_store),
) -> List[SensorReading]:
    return store.snapshot().sensors


@router.get(
    "/temperature/{device_id}",
    response_model=SensorReading,
    summary="Latest reading of one temperature sensor.",
)
async def get_temperature_sensor(
    device_id: str,
    store: SnapshotStore = Depends(get_store),
) -> SensorReading:
    snapshot = store.snapshot_filtered(HardwareType.TemperatureSensor, device_id)
    if not snapshot.sensors:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Temperature sensor {device_id!r} not found.",
        )
    return snapshot.sensors[0]


@router.get(
    "/ups",
    response_model=List[UpsReading],
    summary="Latest variables of every UPS.",
)
async def list_upses(store: SnapshotStore = Depends(get_store)) -> List[UpsReading]:
    return store.snapshot().upses


@router.get(
    "/ups/{device_id}",
    response_model=UpsReading,
    summary="Latest variables of one UPS.",
)
async def get_ups(
    device_id: str,
    store: SnapshotStore = Depends(get_store),
) -> UpsReading:
    snapshot = store.snapshot_filtered(HardwareType.UninterruptiblePowerSupply, device_id)
    if not snapshot.upses:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"UPS {device_id!r} not found.",
        )
    return snapshot.upses[0]


health_router = APIRouter()


@health_router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}
