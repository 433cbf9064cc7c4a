from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Sequence

from recruiterhub.core.datetime_utils import utcnow
from recruiterhub.core.statuses import DEFAULT_URGENT_DAYS
from recruiterhub.schemas.candidate import CandidateRecord
from recruiterhub.schemas.client import ClientRecord, RecruiterRecord
from recruiterhub.schemas.filters import DateWindow, MetricSelector, UiFilters
from recruiterhub.schemas.interview import ScheduledInterview
from recruiterhub.schemas.job import JobRecord
from recruiterhub.services.filters import build_chain


@dataclass
class EntityCollections:
    """One authoritative snapshot of every source collection."""

    candidates: list[CandidateRecord] = field(default_factory=list)
    jobs: list[JobRecord] = field(default_factory=list)
    clients: list[ClientRecord] = field(default_factory=list)
    interviews: list[ScheduledInterview] = field(default_factory=list)
    recruiters: list[RecruiterRecord] = field(default_factory=list)

    def records_for(self, kind: str) -> Sequence[Any]:
        if kind == "candidate":
            return self.candidates
        if kind == "job":
            return self.jobs
        if kind == "client":
            return self.clients
        raise ValueError(f"Unknown entity kind: {kind!r}")


def resolve(
    selector: MetricSelector,
    collections: EntityCollections,
    ui_filters: UiFilters | None = None,
    *,
    window: DateWindow | None = None,
    as_of: datetime | None = None,
    urgent_days: int = DEFAULT_URGENT_DAYS,
) -> list[Any]:
    """Return the exact records behind a dashboard number, in source order."""
    chain = build_chain(
        selector,
        ui_filters,
        window=window,
        as_of=as_of or utcnow(),
        urgent_days=urgent_days,
    )
    return chain.apply(collections.records_for(selector.kind))
