"""Tests for notification decisions, persistence and delivery bookkeeping."""

from datetime import date, timedelta

import pytest

from conftest import T0, FakeNotifier
from powerswitch.errors import DeliveryFailure
from powerswitch.schemas.notification import NotificationStatus, NotificationType
from powerswitch.schemas.power import ConsumptionSummary, PowerState, PowerStatusRecord, TrendLabel
from powerswitch.services import log_recorder, notification_policy
from powerswitch.services.notification_policy import (
    DailySummary,
    MaintenanceAlert,
    ManualTest,
    PowerTransition,
    ThresholdBreach,
    WeeklyReport,
)


def _status(status: str, at=T0, duration=None, id=1) -> PowerStatusRecord:
    return PowerStatusRecord(id=id, status=status, timestamp=at, duration_minutes=duration)


# --- evaluate ---

def test_outage_notification():
    draft = notification_policy.evaluate(PowerTransition(_status("ON"), _status("OFF", id=2)))
    assert draft.type == NotificationType.POWER_OUTAGE
    assert draft.title == "🔴 Power Outage"
    assert "Power outage detected" in draft.message


def test_restoration_mentions_duration():
    draft = notification_policy.evaluate(
        PowerTransition(_status("OFF"), _status("ON", T0 + timedelta(minutes=47), duration=47, id=2))
    )
    assert draft.type == NotificationType.POWER_RESTORED
    assert draft.message == "Power has been restored after 47 minutes."
    assert draft.metadata["duration_minutes"] == 47


def test_repeated_or_first_status_is_silent():
    assert notification_policy.evaluate(PowerTransition(_status("ON"), _status("ON", id=2))) is None
    assert notification_policy.evaluate(PowerTransition(None, _status("OFF"))) is None


@pytest.mark.parametrize("limit,latest,fires", [
    ("1000", 1200, True),
    ("1000", 900, False),
    ("1000", 1000, False),
    ("abc", 1200, False),
    (None, 1200, False),
    ("1000", None, False),
    (" 1000.5 ", "1000.6", True),
    ("nan", 1200, False),
])
def test_threshold_rule(limit, latest, fires):
    draft = notification_policy.evaluate(ThresholdBreach(limit, latest))
    assert (draft is not None) == fires
    if fires:
        assert draft.type == NotificationType.MAINTENANCE_ALERT
        assert draft.title == "⚠️ Power Limit Exceeded"


def test_threshold_message_includes_values():
    draft = notification_policy.evaluate(ThresholdBreach("1000", 1200))
    assert "1000" in draft.message
    assert "1200" in draft.message


def test_manual_test_default_message():
    draft = notification_policy.evaluate(ManualTest())
    assert draft.type == NotificationType.SYSTEM
    assert draft.message == notification_policy.DEFAULT_TEST_MESSAGE
    assert notification_policy.evaluate(ManualTest("hello")).message == "hello"


def test_maintenance_alert():
    draft = notification_policy.evaluate(MaintenanceAlert("Meter inspection at 14:00"))
    assert draft.type == NotificationType.MAINTENANCE_ALERT
    assert draft.message == "Meter inspection at 14:00"


def test_daily_summary_lines():
    draft = notification_policy.evaluate(DailySummary(
        day=date(2026, 3, 1), units=12.5, cost=56.25, status=PowerState.ON,
        outage_count=2, total_outage_minutes=35,
    ))
    assert draft.type == NotificationType.DAILY_SUMMARY
    assert "Consumption: 12.5 units" in draft.message
    assert "Estimated Cost: 56.25" in draft.message
    assert "Outages Today: 2" in draft.message
    assert "Date: 2026-03-01" in draft.message


def test_weekly_report():
    summary = ConsumptionSummary(
        total_units=70, total_cost=315, average_daily=10, records=7,
        trend=3, trend_label=TrendLabel.INCREASING,
    )
    draft = notification_policy.evaluate(WeeklyReport(summary))
    assert draft.type == NotificationType.WEEKLY_REPORT
    assert "Trend: Increasing (+3.0 units)" in draft.message
    assert draft.metadata["trend_label"] == "Increasing"


def test_unknown_event_rejected():
    with pytest.raises(TypeError):
        notification_policy.evaluate(object())


# --- dispatch ---

@pytest.mark.asyncio
async def test_dispatch_persists_and_marks_sent(store, notifier):
    record = await notification_policy.dispatch(store, notifier, ManualTest("ping"))

    assert record.status == NotificationStatus.UNREAD
    assert record.telegram_sent is True
    assert record.telegram_message_id == "101"
    assert notifier.sent[0]["text"] == "<b>🧪 Test Notification</b>\n\nping"

    stored = notification_policy.list_notifications(store)
    assert len(stored) == 1
    assert stored[0].telegram_sent is True
    assert stored[0].telegram_message_id == "101"

    logs = log_recorder.search_logs(store, action=log_recorder.NOTIFICATION_CREATED)
    assert len(logs) == 1


@pytest.mark.asyncio
async def test_dispatch_keeps_record_when_delivery_fails(store):
    notifier = FakeNotifier(ok=False)
    record = await notification_policy.dispatch(store, notifier, ManualTest())

    assert record is not None
    assert record.telegram_sent is False
    assert record.telegram_message_id is None
    assert notification_policy.unread_count(store) == 1


@pytest.mark.asyncio
async def test_dispatch_survives_transport_exception(store):
    class RaisingNotifier(FakeNotifier):
        async def deliver(self, text, parse_mode="HTML", chat_id=None):
            raise DeliveryFailure("telegram", "timeout")

    record = await notification_policy.dispatch(store, RaisingNotifier(), ManualTest())
    assert record.telegram_sent is False
    assert notification_policy.unread_count(store) == 1


@pytest.mark.asyncio
async def test_dispatch_without_draft_writes_nothing(store, notifier):
    result = await notification_policy.dispatch(store, notifier, ThresholdBreach("1000", 900))
    assert result is None
    assert notifier.sent == []
    assert notification_policy.list_notifications(store) == []


# --- management ---

@pytest.mark.asyncio
async def test_mark_read_and_counts(store, notifier):
    first = await notification_policy.dispatch(store, notifier, ManualTest("a"))
    await notification_policy.dispatch(store, notifier, ManualTest("b"))
    await notification_policy.dispatch(store, notifier, ManualTest("c"))
    assert notification_policy.unread_count(store) == 3

    assert notification_policy.mark_read(store, first.id) is True
    assert notification_policy.unread_count(store) == 2
    assert notification_policy.mark_read(store, 9999) is False

    assert notification_policy.mark_all_read(store) == 2
    assert notification_policy.unread_count(store) == 0
    assert notification_policy.mark_all_read(store) == 0

    read = notification_policy.list_notifications(store, status=NotificationStatus.READ)
    assert len(read) == 3


@pytest.mark.asyncio
async def test_mark_unread(store, notifier):
    record = await notification_policy.dispatch(store, notifier, ManualTest())
    notification_policy.mark_read(store, record.id)
    assert notification_policy.unread_count(store) == 0

    assert notification_policy.mark_unread(store, record.id) is True
    assert notification_policy.unread_count(store) == 1
    assert notification_policy.list_notifications(store)[0].status == NotificationStatus.UNREAD
    assert notification_policy.mark_unread(store, 9999) is False

    logs = log_recorder.search_logs(store, action=log_recorder.NOTIFICATION_UNREAD)
    assert len(logs) == 1


@pytest.mark.asyncio
async def test_list_newest_first(store, notifier):
    for text in ["a", "b", "c"]:
        await notification_policy.dispatch(store, notifier, ManualTest(text))
    listed = notification_policy.list_notifications(store, limit=2)
    assert [n.message for n in listed] == ["c", "b"]


@pytest.mark.asyncio
async def test_delete_notification(store, notifier):
    record = await notification_policy.dispatch(store, notifier, ManualTest())
    assert notification_policy.delete_notification(store, record.id) is True
    assert notification_policy.delete_notification(store, record.id) is False
    assert notification_policy.list_notifications(store) == []
