"""
Lead-time reminders for scheduled interviews.

Each (interview, start time, threshold) pair moves pending -> fired -> consumed exactly once.
A pair fires when a scan lands inside the tolerance band around ``start - threshold``; with
catch-up enabled a pair whose band fell between two scans still fires late, as long as the
interview has not started.

Fired and consumed pairs are written to key-value storage after every change, so a restarted
scheduler does not deliver a reminder that was already sent.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Iterable, Mapping, Sequence

from pydantic import ValidationError

from recruiterhub.core.config import settings
from recruiterhub.core.datetime_utils import parse_datetime_utc, utcnow
from recruiterhub.schemas.interview import ReminderStateOut, ScheduledInterview
from recruiterhub.schemas.notification import NotificationCreate
from recruiterhub.services.event_bus import EventBus
from recruiterhub.services.events import publish_notification
from recruiterhub.services.kv_store import KeyValueStorage

logger = logging.getLogger("rh.reminders")

STATE_PENDING = "pending"
STATE_FIRED = "fired"
STATE_CONSUMED = "consumed"

PairKey = tuple[str, datetime, int]


@dataclass(frozen=True)
class ReminderEvent:
    interview_id: str
    candidate_id: str | None
    candidate_name: str | None
    recruiter_id: str | None
    round: str
    mode: str
    start_time: datetime
    threshold_minutes: int
    fired_at: datetime
    late: bool = False

    @property
    def minutes_until_start(self) -> int:
        return max(int((self.start_time - self.fired_at).total_seconds() // 60), 0)

    def to_notification(self) -> NotificationCreate:
        who = self.candidate_name or self.candidate_id or "candidate"
        return NotificationCreate(
            kind="interview_reminder",
            level="warning",
            title=f"Interview in {self.minutes_until_start} minutes",
            message=f"{self.round} with {who} starts at {self.start_time.strftime('%H:%M')} UTC ({self.mode}).",
            recruiter_id=self.recruiter_id,
            candidate_id=self.candidate_id,
        )


Notifier = Callable[[ReminderEvent], Awaitable[None]]


class BusReminderNotifier:
    """Delivers reminders as notifications on the event bus."""

    def __init__(self, bus: EventBus) -> None:
        self._bus = bus

    async def __call__(self, event: ReminderEvent) -> None:
        await publish_notification(self._bus, event.to_notification())


@dataclass
class _PairState:
    interview_id: str
    start_time: datetime
    threshold_minutes: int
    state: str = STATE_PENDING
    fired_at: datetime | None = None


def _row_key(row: Any) -> str:
    if isinstance(row, Mapping):
        return str(row.get("id") or row.get("_id") or row.get("interviewId") or repr(row)[:80])
    return repr(row)[:80]


class ReminderScheduler:
    def __init__(
        self,
        notify: Notifier,
        *,
        thresholds_minutes: Sequence[int] | None = None,
        band_seconds: int | None = None,
        catch_up: bool | None = None,
        storage: KeyValueStorage | None = None,
        storage_key: str | None = None,
    ) -> None:
        thresholds = thresholds_minutes if thresholds_minutes is not None else settings.reminder_thresholds_minutes
        self._thresholds = sorted({int(value) for value in thresholds})
        if not self._thresholds or self._thresholds[0] <= 0:
            raise ValueError("Reminder thresholds must be positive minutes")
        self._band = timedelta(seconds=band_seconds if band_seconds is not None else settings.reminder_band_seconds)
        self._catch_up = settings.reminder_catch_up if catch_up is None else catch_up
        self._notify = notify
        self._storage = storage
        self._storage_key = storage_key or settings.reminder_storage_key
        self._interviews: dict[str, ScheduledInterview] = {}
        self._states: dict[PairKey, _PairState] = {}
        self._reported: set[str] = set()
        self._scanning = False

    @property
    def thresholds(self) -> list[int]:
        return list(self._thresholds)

    @property
    def interviews(self) -> list[ScheduledInterview]:
        return list(self._interviews.values())

    def _report_once(self, key: str, message: str, exc: Exception) -> None:
        if key in self._reported:
            return
        self._reported.add(key)
        logger.warning(message, extra={"interview_id": key, "error": str(exc)})

    async def load(self) -> int:
        """Restore fired and consumed pairs. Unreadable state is logged and ignored."""
        if self._storage is None:
            return 0
        raw = await self._storage.read(self._storage_key)
        if not raw:
            return 0
        restored: dict[PairKey, _PairState] = {}
        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError("Reminder state must be an array")
            for item in data:
                pair = _PairState(
                    interview_id=str(item["interview_id"]),
                    start_time=parse_datetime_utc(item["start_time"]),
                    threshold_minutes=int(item["threshold_minutes"]),
                    state=item["state"],
                    fired_at=parse_datetime_utc(item["fired_at"]) if item.get("fired_at") else None,
                )
                if pair.state not in (STATE_FIRED, STATE_CONSUMED):
                    raise ValueError(f"Unexpected reminder state {pair.state!r}")
                restored[(pair.interview_id, pair.start_time, pair.threshold_minutes)] = pair
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("reminder_state_reset", extra={"storage_key": self._storage_key, "error": str(exc)})
            return 0
        restored.update(self._states)
        self._states = restored
        logger.info("reminder_state_loaded", extra={"count": len(restored)})
        return len(restored)

    async def _persist(self) -> None:
        if self._storage is None:
            return
        document = [
            {
                "interview_id": pair.interview_id,
                "start_time": pair.start_time.isoformat(),
                "threshold_minutes": pair.threshold_minutes,
                "state": pair.state,
                "fired_at": pair.fired_at.isoformat() if pair.fired_at else None,
            }
            for pair in self._states.values()
            if pair.state != STATE_PENDING
        ]
        try:
            await self._storage.write(self._storage_key, json.dumps(document))
        except Exception:
            # Memory state stays authoritative for this process.
            logger.exception("reminder_state_persist_failed", extra={"storage_key": self._storage_key})

    def sync_interviews(self, rows: Iterable[ScheduledInterview | Mapping[str, Any]]) -> int:
        """Replace the live interview set and drop state of removed or rescheduled interviews."""
        live: dict[str, ScheduledInterview] = {}
        for row in rows:
            if isinstance(row, ScheduledInterview):
                interview = row
            else:
                try:
                    interview = ScheduledInterview.model_validate(row)
                except ValidationError as exc:
                    self._report_once(_row_key(row), "reminder_interview_invalid", exc)
                    continue
            if interview.is_active:
                live[interview.id] = interview

        self._interviews = live
        current = {(interview.id, interview.start_time) for interview in live.values()}
        for key in list(self._states):
            if (key[0], key[1]) not in current:
                discarded = self._states.pop(key)
                logger.info(
                    "reminder_state_discarded",
                    extra={
                        "interview_id": discarded.interview_id,
                        "threshold_minutes": discarded.threshold_minutes,
                        "state": discarded.state,
                    },
                )
        return len(live)

    def state_of(self, interview_id: str, threshold_minutes: int) -> str | None:
        interview = self._interviews.get(interview_id)
        if interview is None:
            return None
        pair = self._states.get((interview_id, interview.start_time, threshold_minutes))
        return pair.state if pair else STATE_PENDING

    def states(self) -> list[ReminderStateOut]:
        output: list[ReminderStateOut] = []
        for interview in self._interviews.values():
            for threshold in self._thresholds:
                pair = self._states.get((interview.id, interview.start_time, threshold))
                output.append(
                    ReminderStateOut(
                        interview_id=interview.id,
                        threshold_minutes=threshold,
                        start_time=interview.start_time,
                        state=pair.state if pair else STATE_PENDING,
                        fired_at=pair.fired_at if pair else None,
                    )
                )
        return output

    async def acknowledge(self, interview_id: str, threshold_minutes: int) -> bool:
        """Mark a fired reminder whose delivery failed as handled."""
        interview = self._interviews.get(interview_id)
        if interview is None:
            return False
        pair = self._states.get((interview_id, interview.start_time, threshold_minutes))
        if pair is None or pair.state != STATE_FIRED:
            return False
        pair.state = STATE_CONSUMED
        await self._persist()
        return True

    def _due(self, start: datetime, threshold: int, now: datetime) -> tuple[bool, bool]:
        target = start - timedelta(minutes=threshold)
        if abs(now - target) <= self._band:
            return True, False
        if self._catch_up and target + self._band < now < start:
            return True, True
        return False, False

    def _evaluate(self, interview: ScheduledInterview, now: datetime) -> list[tuple[_PairState, bool]]:
        due: list[tuple[_PairState, bool]] = []
        for threshold in self._thresholds:
            key = (interview.id, interview.start_time, threshold)
            pair = self._states.get(key)
            if pair is not None and pair.state != STATE_PENDING:
                continue
            is_due, late = self._due(interview.start_time, threshold, now)
            if not is_due:
                continue
            if pair is None:
                pair = self._states[key] = _PairState(interview.id, interview.start_time, threshold)
            due.append((pair, late))
        return due

    async def _deliver(self, interview: ScheduledInterview, pair: _PairState, late: bool, now: datetime) -> ReminderEvent:
        pair.state = STATE_FIRED
        pair.fired_at = now
        event = ReminderEvent(
            interview_id=interview.id,
            candidate_id=interview.candidate_id,
            candidate_name=interview.candidate_name,
            recruiter_id=interview.recruiter_id,
            round=interview.round,
            mode=interview.mode,
            start_time=interview.start_time,
            threshold_minutes=pair.threshold_minutes,
            fired_at=now,
            late=late,
        )
        logger.info(
            "reminder_fired",
            extra={"interview_id": interview.id, "threshold_minutes": pair.threshold_minutes, "late": late},
        )
        try:
            await self._notify(event)
        except Exception:
            # Fired pairs are never re-raised; a failed delivery stays in the fired state.
            logger.exception("reminder_delivery_failed", extra={"interview_id": interview.id})
        else:
            pair.state = STATE_CONSUMED
        return event

    async def scan(self, now: datetime | None = None) -> list[ReminderEvent] | None:
        """Evaluate every live interview once. Returns None when a scan is already running."""
        if self._scanning:
            logger.info("reminder_scan_skipped")
            return None
        self._scanning = True
        try:
            now = now or utcnow()
            fired: list[ReminderEvent] = []
            changed = False
            for interview in list(self._interviews.values()):
                try:
                    due = self._evaluate(interview, now)
                except (ValueError, TypeError, OverflowError) as exc:
                    self._report_once(interview.id, "reminder_evaluation_failed", exc)
                    continue
                if not due:
                    continue
                # Several missed thresholds collapse into the nearest one.
                nearest, late = due[0]
                for superseded, _ in due[1:]:
                    superseded.state = STATE_CONSUMED
                    superseded.fired_at = now
                changed = True
                if self._interviews.get(interview.id) is not interview:
                    continue
                fired.append(await self._deliver(interview, nearest, late, now))
            if changed:
                await self._persist()
            return fired
        finally:
            self._scanning = False
