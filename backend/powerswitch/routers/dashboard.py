from fastapi import APIRouter, Depends, HTTPException

from powerswitch.config import settings
from powerswitch.errors import StoreUnavailableError
from powerswitch.schemas.dashboard import DashboardAction, DashboardResponse, LiveSnapshotResponse
from powerswitch.schemas.power import ConsumptionRequest, PowerStatusRequest
from powerswitch.services import live_refresh, workflows
from powerswitch.services.telegram_client import TelegramNotifier, get_notifier
from powerswitch.store import RecordStore, get_optional_store, get_store

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard/", response_model=DashboardResponse)
async def get_dashboard(store: RecordStore | None = Depends(get_optional_store)):
    """Composite dashboard payload; degrades to a 'not configured' view without a store."""
    snapshot = None
    if store is not None:
        try:
            snapshot = live_refresh.build_snapshot(store)
        except StoreUnavailableError:
            snapshot = None
    if snapshot is None:
        snapshot = live_refresh.unconfigured_snapshot()
    return DashboardResponse(
        **snapshot.model_dump(),
        poll_interval_seconds=settings.dashboard_poll_interval,
    )


@router.get("/dashboard/live", response_model=LiveSnapshotResponse)
async def get_live_snapshot():
    """Last snapshot computed by the change feed / refresh timer, with its version."""
    version, snapshot = live_refresh.get_cached_snapshot()
    return LiveSnapshotResponse(version=version, snapshot=snapshot)


@router.post("/dashboard/")
async def dashboard_action(
    req: DashboardAction,
    store: RecordStore = Depends(get_store),
    notifier: TelegramNotifier = Depends(get_notifier),
):
    """Action endpoint used by the dashboard buttons."""
    if req.action == "update_power_status":
        body = PowerStatusRequest.model_validate(req.data)
        result = await workflows.report_power_status(store, notifier, body.status, notes=body.notes)
        return {"success": True, "data": result.record.model_dump(mode="json")}

    if req.action == "add_consumption":
        body = ConsumptionRequest.model_validate(req.data)
        record = workflows.add_consumption_reading(
            store,
            body.units_consumed,
            body.cost_per_unit,
            reading_date=body.reading_date,
            meter_reading=body.meter_reading,
            notes=body.notes,
        )
        return {"success": True, "data": record.model_dump(mode="json")}

    raise HTTPException(status_code=400, detail=f"Unknown action: {req.action}")
