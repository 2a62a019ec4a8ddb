"""APScheduler setup for the dashboard refresh, daily summary and weekly report."""

import asyncio
import logging

from apscheduler.schedulers.background import BackgroundScheduler

from powerswitch.config import settings

logger = logging.getLogger(__name__)

_scheduler: BackgroundScheduler | None = None


def _run_refresh():
    from powerswitch.services.live_refresh import refresh_snapshot
    from powerswitch.store import get_store
    try:
        refresh_snapshot(get_store())
    except Exception as e:
        logger.error("Dashboard refresh job failed: %s", e)


def _run_daily_summary():
    from powerswitch.services.telegram_client import get_notifier
    from powerswitch.services.workflows import send_daily_summary
    from powerswitch.store import get_store
    loop = asyncio.new_event_loop()
    try:
        loop.run_until_complete(send_daily_summary(get_store(), get_notifier()))
    except Exception as e:
        logger.error("Daily summary job failed: %s", e)
    finally:
        loop.close()


def _run_weekly_report():
    from powerswitch.services.telegram_client import get_notifier
    from powerswitch.services.workflows import send_weekly_report
    from powerswitch.store import get_store
    loop = asyncio.new_event_loop()
    try:
        loop.run_until_complete(send_weekly_report(get_store(), get_notifier()))
    except Exception as e:
        logger.error("Weekly report job failed: %s", e)
    finally:
        loop.close()


def start_scheduler():
    global _scheduler
    _scheduler = BackgroundScheduler(timezone=settings.timezone)

    _scheduler.add_job(
        _run_refresh,
        "interval",
        seconds=settings.refresh_interval_seconds,
        id="dashboard_refresh",
        name="Dashboard snapshot refresh",
        max_instances=1,
        coalesce=True,
    )

    _scheduler.add_job(
        _run_daily_summary,
        "cron",
        hour=settings.daily_summary_hour,
        minute=0,
        id="daily_summary",
        name="Daily power summary",
        max_instances=1,
    )

    _scheduler.add_job(
        _run_weekly_report,
        "cron",
        day_of_week="mon",
        hour=settings.weekly_report_hour,
        minute=0,
        id="weekly_report",
        name="Weekly power report",
        max_instances=1,
    )

    _scheduler.start()
    logger.info(
        "Scheduler started: refresh every %d s, daily summary at %02d:00, weekly report Mondays at %02d:00",
        settings.refresh_interval_seconds,
        settings.daily_summary_hour,
        settings.weekly_report_hour,
    )


def stop_scheduler():
    global _scheduler
    if _scheduler:
        _scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
        _scheduler = None


def is_running() -> bool:
    return _scheduler is not None and _scheduler.running
