from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from recruiterhub.core.config import settings
from recruiterhub.jobs.tasks import run_activity_feed, run_reminder_scan
from recruiterhub.services.snapshot import DashboardSession

logger = logging.getLogger("rh.reminders")


def start_scheduler(dashboard: DashboardSession) -> AsyncIOScheduler:
    if not settings.reminder_scan_fits_band:
        logger.warning(
            "reminder_scan_exceeds_band",
            extra={
                "scan_seconds": settings.reminder_scan_seconds,
                "band_seconds": settings.reminder_band_seconds,
            },
        )
    scheduler = AsyncIOScheduler(timezone="UTC")
    scheduler.add_job(
        run_reminder_scan,
        IntervalTrigger(seconds=settings.reminder_scan_seconds),
        args=[dashboard],
        id="reminder_scan",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    if settings.activity_feed_enabled and dashboard.activity_feed is not None:
        scheduler.add_job(
            run_activity_feed,
            IntervalTrigger(seconds=settings.activity_feed_seconds),
            args=[dashboard],
            id="activity_feed",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
    scheduler.start()
    dashboard.attach_scheduler(scheduler)
    return scheduler
