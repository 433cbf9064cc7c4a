from fastapi import APIRouter

from recruiterhub.api.routes import dashboard
from recruiterhub.api.routes import notifications
from recruiterhub.api.routes import reminders
from recruiterhub.api.routes import reports

api_router = APIRouter()
api_router.include_router(dashboard.router)
api_router.include_router(reports.router)
api_router.include_router(notifications.router)
api_router.include_router(reminders.router)
