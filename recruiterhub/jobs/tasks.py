from __future__ import annotations

import logging

from recruiterhub.services.snapshot import DashboardSession

logger = logging.getLogger("rh.reminders")


async def run_reminder_scan(dashboard: DashboardSession) -> None:
    if dashboard.closed:
        return
    fired = await dashboard.reminders.scan()
    if fired:
        logger.info("reminder_scan_completed", extra={"fired": len(fired)})


async def run_activity_feed(dashboard: DashboardSession) -> None:
    if dashboard.closed or dashboard.activity_feed is None:
        return
    await dashboard.activity_feed.tick()
