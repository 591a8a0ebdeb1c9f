"""Record CRUD, statistics, export and change-stream endpoints."""

import asyncio
from collections.abc import Awaitable
from typing import Any, TypeVar

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request, Response, status
from fastapi.responses import StreamingResponse

from schooldesk.application.schemas import RecordResponse, StatisticsResponse
from schooldesk.application.services import ExportService, RecordStore
from schooldesk.config import Settings
from schooldesk.domain.entities import Identity
from schooldesk.domain.exceptions import (
    BackendError,
    CapacityExceededError,
    PermissionDeniedError,
    RecordNotFoundError,
    RecordStoreError,
    RecordValidationError,
    UnsupportedExportFormatError,
)
from schooldesk.infrastructure.dependencies import (
    get_current_identity,
    get_export_service,
    get_record_store,
    get_settings_from_app,
)

router = APIRouter(prefix="/records", tags=["Records"])

T = TypeVar("T")

_STATUS_BY_ERROR: dict[type[RecordStoreError], int] = {
    RecordValidationError: status.HTTP_422_UNPROCESSABLE_CONTENT,
    PermissionDeniedError: status.HTTP_403_FORBIDDEN,
    RecordNotFoundError: status.HTTP_404_NOT_FOUND,
    CapacityExceededError: status.HTTP_409_CONFLICT,
    BackendError: status.HTTP_502_BAD_GATEWAY,
    UnsupportedExportFormatError: status.HTTP_400_BAD_REQUEST,
}


def _http_error(exc: RecordStoreError) -> HTTPException:
    code = _STATUS_BY_ERROR.get(type(exc), status.HTTP_400_BAD_REQUEST)
    return HTTPException(status_code=code, detail=exc.message)


async def _mutate(operation: Awaitable[T], settings: Settings) -> T:
    """Run a store mutation under the configured backend timeout."""
    try:
        return await asyncio.wait_for(operation, timeout=settings.backend_timeout_seconds)
    except asyncio.TimeoutError:
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail="The record backend did not respond in time",
        )
    except RecordStoreError as e:
        raise _http_error(e)


@router.get("/stats", response_model=StatisticsResponse)
async def get_statistics(
    identity: Identity = Depends(get_current_identity),
    store: RecordStore = Depends(get_record_store),
) -> StatisticsResponse:
    """Record counts per type."""
    counts = store.statistics()
    return StatisticsResponse(counts=counts, total=sum(counts.values()))


@router.get("/events")
async def stream_events(
    identity: Identity = Depends(get_current_identity),
    store: RecordStore = Depends(get_record_store),
) -> StreamingResponse:
    """Server-sent events: ``records_changed`` after every resync or mutation,
    ``store_error`` when an operation is rejected."""
    return StreamingResponse(
        store.broadcaster.subscribe(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.patch("/item/{record_id}", response_model=RecordResponse)
async def update_record(
    record_id: str,
    changes: dict[str, Any] = Body(...),
    identity: Identity = Depends(get_current_identity),
    store: RecordStore = Depends(get_record_store),
    settings: Settings = Depends(get_settings_from_app),
) -> RecordResponse:
    """Merge the given fields onto an existing record."""
    record = await _mutate(store.update(identity, record_id, changes), settings)
    return RecordResponse.from_record(record)


@router.delete("/item/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_record(
    record_id: str,
    identity: Identity = Depends(get_current_identity),
    store: RecordStore = Depends(get_record_store),
    settings: Settings = Depends(get_settings_from_app),
) -> Response:
    """Delete a record by ID."""
    await _mutate(store.delete(identity, record_id), settings)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{record_type}/export")
async def export_records(
    record_type: str,
    export_format: str = Query("json", alias="format", description="json, csv or xlsx"),
    identity: Identity = Depends(get_current_identity),
    service: ExportService = Depends(get_export_service),
    settings: Settings = Depends(get_settings_from_app),
) -> Response:
    """Download the viewer's records of one type."""
    if not settings.enable_export:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Export is disabled")
    try:
        result = service.export(identity, record_type, export_format)
    except RecordStoreError as e:
        raise _http_error(e)
    return Response(
        content=result.content,
        media_type=result.media_type,
        headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
    )


@router.get("/{record_type}", response_model=list[RecordResponse])
async def list_records(
    record_type: str,
    request: Request,
    identity: Identity = Depends(get_current_identity),
    store: RecordStore = Depends(get_record_store),
) -> list[RecordResponse]:
    """Visible records of one type, newest first.

    Every query parameter is an exact-match filter; dotted names reach
    into nested fields and numeric or boolean fields match their text form.
    """
    filters = dict(request.query_params)
    records = store.query(identity, record_type, filters)
    return [RecordResponse.from_record(r) for r in records]


@router.post("/{record_type}", response_model=RecordResponse, status_code=status.HTTP_201_CREATED)
async def create_record(
    record_type: str,
    fields: dict[str, Any] = Body(...),
    identity: Identity = Depends(get_current_identity),
    store: RecordStore = Depends(get_record_store),
    settings: Settings = Depends(get_settings_from_app),
) -> RecordResponse:
    """Create a record of the given type."""
    record = await _mutate(store.create(identity, record_type, fields), settings)
    return RecordResponse.from_record(record)
