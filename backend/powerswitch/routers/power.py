from fastapi import APIRouter, Depends, Query

from powerswitch.schemas.power import PowerStatusRecord, PowerStatusRequest, PowerStatusUpdateResponse
from powerswitch.services import status_tracker, workflows
from powerswitch.services.telegram_client import TelegramNotifier, get_notifier
from powerswitch.store import RecordStore, get_store

router = APIRouter(prefix="/power", tags=["power"])


@router.get("/status", response_model=PowerStatusRecord | None)
async def get_power_status(store: RecordStore = Depends(get_store)):
    """Most recent status record (the current status)."""
    return status_tracker.get_current_status(store)


@router.get("/history", response_model=list[PowerStatusRecord])
async def get_power_history(
    limit: int = Query(10, ge=1, le=500),
    store: RecordStore = Depends(get_store),
):
    return status_tracker.get_status_history(store, limit)


@router.post("/status", response_model=PowerStatusUpdateResponse, status_code=201)
async def update_power_status(
    req: PowerStatusRequest,
    store: RecordStore = Depends(get_store),
    notifier: TelegramNotifier = Depends(get_notifier),
):
    """Report an outage (OFF) or a restoration (ON)."""
    result = await workflows.report_power_status(store, notifier, req.status, notes=req.notes)
    return PowerStatusUpdateResponse(
        record=result.record,
        previous=result.previous,
        notification=result.notification,
        clock_anomaly=str(result.anomaly) if result.anomaly else None,
    )
