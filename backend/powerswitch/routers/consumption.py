from fastapi import APIRouter, Depends, Query

from powerswitch.schemas.power import ConsumptionRecord, ConsumptionRequest, ConsumptionSummary
from powerswitch.services import consumption, workflows
from powerswitch.store import RecordStore, get_store

router = APIRouter(prefix="/consumption", tags=["consumption"])


@router.get("/", response_model=list[ConsumptionRecord])
async def list_consumption(
    limit: int = Query(7, ge=1, le=366),
    store: RecordStore = Depends(get_store),
):
    """Daily consumption records, newest day first."""
    return consumption.get_recent_consumption(store, limit)


@router.post("/", response_model=ConsumptionRecord, status_code=201)
async def add_consumption(req: ConsumptionRequest, store: RecordStore = Depends(get_store)):
    """Add a reading; a second reading for the same day accumulates into it."""
    return workflows.add_consumption_reading(
        store,
        req.units_consumed,
        req.cost_per_unit,
        reading_date=req.reading_date,
        meter_reading=req.meter_reading,
        notes=req.notes,
    )


@router.get("/summary", response_model=ConsumptionSummary)
async def get_consumption_summary(
    limit: int = Query(7, ge=1, le=366),
    store: RecordStore = Depends(get_store),
):
    return consumption.summarize(consumption.get_recent_consumption(store, limit))
