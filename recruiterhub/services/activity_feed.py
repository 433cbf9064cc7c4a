from __future__ import annotations

import random
from typing import Sequence

from recruiterhub.schemas.notification import NotificationCreate
from recruiterhub.services.event_bus import EventBus
from recruiterhub.services.events import publish_notification

# Synthetic dashboard activity used for demos and load checks.
SAMPLE_EVENTS: tuple[NotificationCreate, ...] = (
    NotificationCreate(
        kind="new_submission",
        level="info",
        title="New candidate submitted",
        message="A recruiter added a new candidate to the pipeline.",
    ),
    NotificationCreate(
        kind="status_change",
        level="success",
        title="Offer released",
        message="A candidate moved to Offer.",
    ),
    NotificationCreate(
        kind="interview_scheduled",
        level="info",
        title="Interview scheduled",
        message="A new interview round was booked.",
    ),
    NotificationCreate(
        kind="tat_alert",
        level="warning",
        title="Requirement nearing TAT",
        message="A requirement is due within the next few days.",
    ),
)


class SimulatedActivityFeed:
    """Low-probability synthetic event source; one roll per tick."""

    def __init__(
        self,
        bus: EventBus,
        *,
        probability: float,
        events: Sequence[NotificationCreate] = SAMPLE_EVENTS,
        rng: random.Random | None = None,
    ) -> None:
        if not 0.0 <= probability <= 1.0:
            raise ValueError("probability must be between 0 and 1")
        if not events:
            raise ValueError("at least one sample event is required")
        self._bus = bus
        self._probability = probability
        self._events = tuple(events)
        self._rng = rng or random.Random()

    async def tick(self) -> NotificationCreate | None:
        if self._rng.random() >= self._probability:
            return None
        event = self._rng.choice(self._events)
        await publish_notification(self._bus, event)
        return event
