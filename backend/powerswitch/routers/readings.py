from fastapi import APIRouter, Depends

from powerswitch.schemas.power import MeterReadingRecord, MeterReadingRequest, MeterReadingResponse
from powerswitch.services import meter_readings, workflows
from powerswitch.services.telegram_client import TelegramNotifier, get_notifier
from powerswitch.store import RecordStore, get_store

router = APIRouter(prefix="/readings", tags=["readings"])


@router.get("/latest", response_model=MeterReadingRecord | None)
async def get_latest_reading(store: RecordStore = Depends(get_store)):
    """Latest voltage/current/power/units values for the dashboard cards."""
    return meter_readings.get_latest_reading(store)


@router.post("/", response_model=MeterReadingResponse, status_code=201)
async def add_reading(
    req: MeterReadingRequest,
    store: RecordStore = Depends(get_store),
    notifier: TelegramNotifier = Depends(get_notifier),
):
    reading, notification = await workflows.record_meter_reading(
        store, notifier,
        voltage=req.voltage,
        current=req.current,
        power=req.power,
        units=req.units,
        recorded_at=req.recorded_at,
    )
    return MeterReadingResponse(reading=reading, notification=notification)
