from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable

from apscheduler.schedulers.base import BaseScheduler

from recruiterhub.core.config import settings
from recruiterhub.core.datetime_utils import utcnow
from recruiterhub.core.statuses import normalize_kind
from recruiterhub.schemas.dashboard import DashboardMetrics, FetchNotice
from recruiterhub.schemas.filters import DateWindow, MetricSelector, UiFilters
from recruiterhub.schemas.notification import NotificationCreate
from recruiterhub.services.activity_feed import SimulatedActivityFeed
from recruiterhub.services.collections import CollectionClient, load_collections
from recruiterhub.services.drilldown import EntityCollections, resolve
from recruiterhub.services.event_bus import EventBus
from recruiterhub.services.events import NotificationFeed, publish_notification, snapshot_change_events
from recruiterhub.services.export import export_filename, serialize
from recruiterhub.services.metrics import aggregate
from recruiterhub.services.notifications import NotificationStore
from recruiterhub.services.reminders import ReminderScheduler

logger = logging.getLogger("rh.snapshot")


class DashboardClosed(RuntimeError):
    pass


class DashboardSession:
    """
    Owns the current snapshot and the engine's stateful collaborators for one dashboard.

    Each refresh replaces every collection; metrics and drilldowns are recomputed from it
    on demand. Closing the session stops its timers, and a fetch still in flight at that
    point is discarded instead of applied.
    """

    def __init__(
        self,
        client: CollectionClient,
        store: NotificationStore,
        reminders: ReminderScheduler,
        bus: EventBus,
        *,
        activity_feed: SimulatedActivityFeed | None = None,
        urgent_days: int | None = None,
        emit_change_events: bool = True,
    ) -> None:
        self.client = client
        self.store = store
        self.reminders = reminders
        self.bus = bus
        self.activity_feed = activity_feed
        self.feed = NotificationFeed(store, bus)
        self._urgent_days = settings.tat_urgent_days if urgent_days is None else urgent_days
        self._emit_change_events = emit_change_events
        self._collections = EntityCollections()
        self._notices: list[FetchNotice] = []
        self._fetched_at: datetime | None = None
        self._generation = 0
        self._closed = False
        self._scheduler: BaseScheduler | None = None
        self._reported_rows: set[str] = set()
        self._baseline_candidates: list[Any] | None = None
        self._baseline_interviews: list[Any] | None = None

    @property
    def collections(self) -> EntityCollections:
        return self._collections

    @property
    def notices(self) -> list[FetchNotice]:
        return list(self._notices)

    @property
    def fetched_at(self) -> datetime | None:
        return self._fetched_at

    @property
    def closed(self) -> bool:
        return self._closed

    async def start(self, *, initial_refresh: bool = True) -> None:
        await self.store.load()
        await self.reminders.load()
        await self.feed.start()
        if initial_refresh:
            await self.refresh()

    def attach_scheduler(self, scheduler: BaseScheduler) -> None:
        self._scheduler = scheduler

    async def refresh(self) -> list[FetchNotice]:
        if self._closed:
            raise DashboardClosed("Dashboard session is closed")
        self._generation += 1
        generation = self._generation
        collections, interview_rows, notices = await load_collections(self.client, reported=self._reported_rows)
        if self._closed or generation != self._generation:
            logger.info("snapshot_discarded", extra={"generation": generation})
            return notices

        failed = {notice.kind for notice in notices if notice.failed}
        previous_notices = {notice.message for notice in self._notices}
        self.apply(collections, interview_rows, notices)

        if self._emit_change_events:
            for event in self._change_events(collections, failed):
                await publish_notification(self.bus, event)
        fresh = [notice for notice in notices if notice.message not in previous_notices]
        if fresh:
            await publish_notification(
                self.bus,
                NotificationCreate(
                    kind="system",
                    level="error",
                    title="Some dashboard data could not be loaded",
                    message=" ".join(notice.message for notice in fresh),
                ),
            )
        return notices

    def _change_events(self, collections: EntityCollections, failed: set[str]) -> list[NotificationCreate]:
        # Diffs run against the last good load of each kind; a failed kind keeps its baseline.
        candidates = None if "candidates" in failed else collections.candidates
        interviews = None if "interviews" in failed else collections.interviews
        events: list[NotificationCreate] = []
        if candidates is not None and self._baseline_candidates is not None:
            events.extend(snapshot_change_events(self._baseline_candidates, candidates, (), ()))
        if interviews is not None and self._baseline_interviews is not None:
            events.extend(snapshot_change_events((), (), self._baseline_interviews, interviews))
        if candidates is not None:
            self._baseline_candidates = list(candidates)
        if interviews is not None:
            self._baseline_interviews = list(interviews)
        return events

    def apply(
        self,
        collections: EntityCollections,
        interview_rows: Iterable[Any] = (),
        notices: Iterable[FetchNotice] = (),
    ) -> None:
        notices = list(notices)
        if any(notice.kind == "interviews" and notice.failed for notice in notices):
            # Reminder state survives an interview outage; the snapshot shows none.
            collections.interviews = []
        else:
            self.reminders.sync_interviews(interview_rows)
            collections.interviews = self.reminders.interviews
        self._collections = collections
        self._notices = notices
        self._fetched_at = utcnow()
        logger.info(
            "snapshot_applied",
            extra={
                "candidates": len(collections.candidates),
                "jobs": len(collections.jobs),
                "clients": len(collections.clients),
                "interviews": len(collections.interviews),
                "failed": [notice.kind for notice in self._notices if notice.failed],
            },
        )

    def metrics(self, window: DateWindow | None = None, *, as_of: datetime | None = None) -> DashboardMetrics:
        collections = self._collections
        return aggregate(
            collections.candidates,
            collections.jobs,
            collections.clients,
            window,
            as_of=as_of,
            recruiters=collections.recruiters,
            urgent_days=self._urgent_days,
        )

    def drilldown(
        self,
        selector: MetricSelector,
        ui_filters: UiFilters | None = None,
        *,
        window: DateWindow | None = None,
        as_of: datetime | None = None,
    ) -> list[Any]:
        return resolve(
            selector,
            self._collections,
            ui_filters,
            window=window,
            as_of=as_of,
            urgent_days=self._urgent_days,
        )

    def export(
        self,
        selector: MetricSelector,
        ui_filters: UiFilters | None = None,
        *,
        window: DateWindow | None = None,
        as_of: datetime | None = None,
    ) -> tuple[str, str]:
        records = self.drilldown(selector, ui_filters, window=window, as_of=as_of)
        kind = normalize_kind(selector.kind)
        return export_filename(kind, (as_of or utcnow()).date()), serialize(kind, records)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._generation += 1
        if self._scheduler is not None and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._scheduler = None
        await self.feed.stop()
        await self.store.close()
        await self.client.aclose()
        logger.info("dashboard_closed")
