from fastapi import APIRouter, Depends, HTTPException, Query

from powerswitch.schemas.notification import (
    MaintenanceAlertRequest,
    ManualTestRequest,
    NotificationRecord,
    NotificationStatus,
)
from powerswitch.services import notification_policy, workflows
from powerswitch.services.telegram_client import TelegramNotifier, get_notifier
from powerswitch.store import RecordStore, get_store

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=list[NotificationRecord])
async def list_notifications(
    limit: int = Query(50, ge=1, le=500),
    status: NotificationStatus | None = None,
    store: RecordStore = Depends(get_store),
):
    return notification_policy.list_notifications(store, limit, status)


@router.get("/unread-count")
async def get_unread_count(store: RecordStore = Depends(get_store)):
    return {"unread": notification_policy.unread_count(store)}


@router.post("/read-all")
async def mark_all_read(store: RecordStore = Depends(get_store)):
    return {"updated": notification_policy.mark_all_read(store)}


@router.post("/test", response_model=NotificationRecord, status_code=201)
async def send_test(
    req: ManualTestRequest | None = None,
    store: RecordStore = Depends(get_store),
    notifier: TelegramNotifier = Depends(get_notifier),
):
    """Create a system notification and push it to Telegram."""
    return await workflows.send_test_notification(store, notifier, req.message if req else None)


@router.post("/maintenance", response_model=NotificationRecord, status_code=201)
async def send_maintenance(
    req: MaintenanceAlertRequest,
    store: RecordStore = Depends(get_store),
    notifier: TelegramNotifier = Depends(get_notifier),
):
    return await workflows.send_maintenance_alert(store, notifier, req.message)


@router.post("/daily-summary", response_model=NotificationRecord, status_code=201)
async def send_daily_summary(
    store: RecordStore = Depends(get_store),
    notifier: TelegramNotifier = Depends(get_notifier),
):
    """Send today's summary now instead of waiting for the scheduled run."""
    return await workflows.send_daily_summary(store, notifier)


@router.post("/{notification_id}/read")
async def mark_read(notification_id: int, store: RecordStore = Depends(get_store)):
    if not notification_policy.mark_read(store, notification_id):
        raise HTTPException(status_code=404, detail=f"Notification {notification_id} not found")
    return {"status": "ok"}


@router.post("/{notification_id}/unread")
async def mark_unread(notification_id: int, store: RecordStore = Depends(get_store)):
    if not notification_policy.mark_unread(store, notification_id):
        raise HTTPException(status_code=404, detail=f"Notification {notification_id} not found")
    return {"status": "ok"}


@router.delete("/{notification_id}")
async def delete_notification(notification_id: int, store: RecordStore = Depends(get_store)):
    if not notification_policy.delete_notification(store, notification_id):
        raise HTTPException(status_code=404, detail=f"Notification {notification_id} not found")
    return {"status": "deleted"}
