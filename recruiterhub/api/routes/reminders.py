from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from recruiterhub.api import deps
from recruiterhub.schemas.interview import ReminderStateOut
from recruiterhub.services.snapshot import DashboardSession

router = APIRouter(prefix="/ops/reminders", tags=["reminders"])


@router.get("", response_model=list[ReminderStateOut])
async def list_reminders(dashboard: DashboardSession = Depends(deps.get_dashboard)):
    return dashboard.reminders.states()


@router.post("/{interview_id}/{threshold_minutes}/ack", response_model=ReminderStateOut)
async def acknowledge_reminder(
    interview_id: str,
    threshold_minutes: int,
    dashboard: DashboardSession = Depends(deps.get_dashboard),
):
    if not await dashboard.reminders.acknowledge(interview_id, threshold_minutes):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No undelivered reminder to acknowledge.")
    for state in dashboard.reminders.states():
        if state.interview_id == interview_id and state.threshold_minutes == threshold_minutes:
            return state
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reminder not found.")
