import logging

from fastapi import FastAPI

from recruiterhub.api.router import api_router
from recruiterhub.core.config import settings
from recruiterhub.db.session import SessionLocal, create_tables
from recruiterhub.jobs.scheduler import start_scheduler
from recruiterhub.middleware.logging import RequestLoggingMiddleware
from recruiterhub.services.activity_feed import SimulatedActivityFeed
from recruiterhub.services.collections import CollectionClient
from recruiterhub.services.event_bus import event_bus
from recruiterhub.services.kv_store import SqlKeyValueStorage
from recruiterhub.services.notifications import NotificationStore
from recruiterhub.services.reminders import BusReminderNotifier, ReminderScheduler
from recruiterhub.services.snapshot import DashboardSession

logging.basicConfig(level=logging.INFO)
logging.getLogger("apscheduler").setLevel(logging.WARNING)
logging.getLogger("apscheduler.scheduler").setLevel(logging.WARNING)

app = FastAPI(
    title=settings.app_name,
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(RequestLoggingMiddleware)


@app.get("/health")
async def health_check():
    return {"status": "ok", "environment": settings.environment}


app.include_router(api_router)


def build_dashboard() -> DashboardSession:
    activity_feed = None
    if settings.activity_feed_enabled:
        activity_feed = SimulatedActivityFeed(event_bus, probability=settings.activity_feed_probability)
    storage = SqlKeyValueStorage(SessionLocal)
    return DashboardSession(
        CollectionClient(),
        NotificationStore(storage),
        ReminderScheduler(BusReminderNotifier(event_bus), storage=storage),
        event_bus,
        activity_feed=activity_feed,
    )


@app.on_event("startup")
async def _startup_dashboard() -> None:
    await create_tables()
    dashboard = build_dashboard()
    await dashboard.start()
    app.state.dashboard = dashboard
    app.state.scheduler = start_scheduler(dashboard)


@app.on_event("shutdown")
async def _shutdown_dashboard() -> None:
    dashboard = getattr(app.state, "dashboard", None)
    if dashboard:
        await dashboard.close()
    await event_bus.close()
