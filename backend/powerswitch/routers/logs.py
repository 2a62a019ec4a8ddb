from fastapi import APIRouter, Depends, Query

from powerswitch.schemas.system_log import SystemLogEntry
from powerswitch.services import log_recorder
from powerswitch.store import RecordStore, get_store

router = APIRouter(prefix="/logs", tags=["logs"])


@router.get("/", response_model=list[SystemLogEntry])
async def list_logs(
    search: str | None = None,
    action: str | None = None,
    limit: int = Query(100, ge=1, le=1000),
    store: RecordStore = Depends(get_store),
):
    """Audit log, newest first; `action=all` is the same as no action filter."""
    return log_recorder.search_logs(store, search=search, action=action, limit=limit)
