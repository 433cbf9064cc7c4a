from __future__ import annotations

import asyncio
import json
import logging
from typing import Iterable

from pydantic import ValidationError

from recruiterhub.schemas.candidate import CandidateRecord
from recruiterhub.schemas.interview import ScheduledInterview
from recruiterhub.schemas.notification import Notification, NotificationCreate
from recruiterhub.services.event_bus import EventBus
from recruiterhub.services.notifications import NotificationStore, NotificationStoreClosed

logger = logging.getLogger("rh.events")

NOTIFICATION_EVENT = "notification"


async def publish_notification(bus: EventBus, event: NotificationCreate) -> None:
    await bus.publish({"type": NOTIFICATION_EVENT, "notification": event.model_dump(mode="json")})


def candidate_submitted_event(candidate: CandidateRecord) -> NotificationCreate:
    position = f" for {candidate.position}" if candidate.position else ""
    return NotificationCreate(
        kind="new_submission",
        level="info",
        title="New candidate submitted",
        message=f"{candidate.name} was submitted{position}.",
        recruiter_id=candidate.recruiter_id,
        candidate_id=candidate.id,
        job_id=candidate.assigned_job_id,
    )


def status_changed_event(candidate: CandidateRecord, from_status: str) -> NotificationCreate:
    level = "success" if candidate.status in ("Offer", "Joined") else "info"
    if candidate.status == "Rejected":
        level = "warning"
    return NotificationCreate(
        kind="status_change",
        level=level,
        title="Candidate status updated",
        message=f"{candidate.name} moved from {from_status} to {candidate.status}.",
        recruiter_id=candidate.recruiter_id,
        candidate_id=candidate.id,
        job_id=candidate.assigned_job_id,
    )


def interview_booked_event(interview: ScheduledInterview) -> NotificationCreate:
    who = interview.candidate_name or interview.candidate_id or "A candidate"
    return NotificationCreate(
        kind="interview_scheduled",
        level="info",
        title="Interview scheduled",
        message=f"{who}: {interview.round} on {interview.start_time.strftime('%Y-%m-%d %H:%M')} UTC ({interview.mode}).",
        recruiter_id=interview.recruiter_id,
        candidate_id=interview.candidate_id,
    )


def snapshot_change_events(
    previous_candidates: Iterable[CandidateRecord],
    current_candidates: Iterable[CandidateRecord],
    previous_interviews: Iterable[ScheduledInterview],
    current_interviews: Iterable[ScheduledInterview],
) -> list[NotificationCreate]:
    """Domain events implied by the difference between two consecutive snapshots."""
    events: list[NotificationCreate] = []
    before = {candidate.id: candidate for candidate in previous_candidates}
    for candidate in current_candidates:
        earlier = before.get(candidate.id)
        if earlier is None:
            events.append(candidate_submitted_event(candidate))
        elif earlier.status != candidate.status:
            events.append(status_changed_event(candidate, earlier.status))

    known_interviews = {interview.id for interview in previous_interviews}
    for interview in current_interviews:
        if interview.id not in known_interviews and interview.is_active:
            events.append(interview_booked_event(interview))
    return events


class NotificationFeed:
    """Applies notification events from the bus to the store, one at a time in arrival order."""

    def __init__(self, store: NotificationStore, bus: EventBus) -> None:
        self._store = store
        self._bus = bus
        self._queue: asyncio.Queue[str] | None = None
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            return
        # Unbounded so that no published event is ever dropped.
        self._queue = await self._bus.subscribe(maxsize=0)
        self._task = asyncio.create_task(self._run())

    async def _run(self) -> None:
        assert self._queue is not None
        while True:
            data = await self._queue.get()
            try:
                await self.handle(data)
            except NotificationStoreClosed:
                logger.warning("notification_feed_store_closed")
            except Exception:
                logger.exception("notification_feed_apply_failed")
            finally:
                self._queue.task_done()

    async def handle(self, data: str) -> Notification | None:
        try:
            payload = json.loads(data)
        except ValueError:
            logger.warning("notification_feed_bad_payload", extra={"payload": data[:200]})
            return None
        if not isinstance(payload, dict) or payload.get("type") != NOTIFICATION_EVENT:
            return None
        try:
            event = NotificationCreate.model_validate(payload.get("notification") or {})
        except ValidationError as exc:
            logger.warning("notification_feed_invalid_event", extra={"error": str(exc)})
            return None
        return await self._store.add(event)

    async def drain(self) -> None:
        if self._queue is not None:
            await self._queue.join()

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        if self._queue is not None:
            await self._bus.unsubscribe(self._queue)
            self._queue = None
