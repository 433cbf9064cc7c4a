from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Iterable

from recruiterhub.core.datetime_utils import days_remaining
from recruiterhub.core.statuses import (
    CLIENT_ACTIVE,
    CLIENT_ADDED_THIS_MONTH,
    CLIENT_WITH_ADDRESS,
    CLIENT_WITH_WEBSITE,
    DEFAULT_URGENT_DAYS,
    JOB_ASSIGNED,
    JOB_UNASSIGNED,
    METRIC_ALL,
    OUTCOME_STATUSES,
    OUTCOME_SUBMISSIONS,
    TAT_BUCKETS,
    normalize_status,
    tat_bucket,
)
from recruiterhub.schemas.filters import DateWindow, MetricSelector, UiFilters

Predicate = Callable[[Any], bool]

# Fields scanned by free-text search, per entity kind.
SEARCH_FIELDS: dict[str, tuple[str, ...]] = {
    "candidate": ("name", "email", "phone", "position", "client", "recruiter_name", "candidate_code"),
    "job": ("job_code", "client_name", "position", "location", "skills", "primary_recruiter", "secondary_recruiter"),
    "client": ("company_name", "contact_person", "email", "industry", "address"),
}

# Date attribute used for windowing and the date-range filter, per entity kind.
DATE_FIELDS: dict[str, str] = {
    "candidate": "created_at",
    "job": "created_at",
    "client": "date_added",
}

_ALL_VALUES = {"", "all"}


@dataclass(frozen=True)
class FilterChain:
    """Ordered, ANDed predicate list over records of one entity kind."""

    kind: str
    predicates: tuple[Predicate, ...] = ()

    def where(self, *predicates: Predicate) -> "FilterChain":
        return FilterChain(self.kind, self.predicates + tuple(predicates))

    def extend(self, other: "FilterChain") -> "FilterChain":
        if other.kind != self.kind:
            raise ValueError(f"Cannot combine {self.kind} and {other.kind} filters")
        return self.where(*other.predicates)

    def matches(self, record: Any) -> bool:
        return all(predicate(record) for predicate in self.predicates)

    def apply(self, records: Iterable[Any]) -> list[Any]:
        return [record for record in records if self.matches(record)]

    def count(self, records: Iterable[Any]) -> int:
        return sum(1 for record in records if self.matches(record))


def _is_all(value: str | None) -> bool:
    return value is None or value.strip().lower() in _ALL_VALUES


def record_date(kind: str, record: Any) -> datetime | None:
    return getattr(record, DATE_FIELDS[kind])


def window_predicate(kind: str, window: DateWindow | None) -> Predicate:
    if window is None or not window.bounded:
        return lambda record: True
    return lambda record: window.contains(record_date(kind, record))


def window_filter(kind: str, records: Iterable[Any], window: DateWindow | None) -> list[Any]:
    return FilterChain(kind).where(window_predicate(kind, window)).apply(records)


def status_predicate(statuses: frozenset[str]) -> Predicate:
    return lambda record: record.status in statuses


def recruiter_id_predicate(recruiter_id: str) -> Predicate:
    return lambda record: record.recruiter_id == recruiter_id


def job_days_remaining(job: Any, as_of: datetime) -> int | None:
    if job.tat_deadline is None:
        return None
    return days_remaining(job.tat_deadline, as_of)


def job_tat_bucket(job: Any, as_of: datetime, *, urgent_days: int = DEFAULT_URGENT_DAYS) -> str:
    return tat_bucket(job_days_remaining(job, as_of), urgent_days=urgent_days)


def _candidate_metric(selector: MetricSelector) -> FilterChain:
    chain = FilterChain("candidate")
    if selector.recruiter_id:
        chain = chain.where(recruiter_id_predicate(selector.recruiter_id))
    metric = selector.metric
    if metric in (METRIC_ALL, OUTCOME_SUBMISSIONS):
        return chain
    # Outcome buckets only apply when scoped to a recruiter, otherwise the plain status wins.
    if selector.recruiter_id and metric in OUTCOME_STATUSES:
        return chain.where(status_predicate(OUTCOME_STATUSES[metric]))
    status = normalize_status(metric)
    if status is not None:
        return chain.where(status_predicate(frozenset({status})))
    return chain.where(status_predicate(OUTCOME_STATUSES[metric]))


def _job_metric(selector: MetricSelector, as_of: datetime, urgent_days: int) -> FilterChain:
    chain = FilterChain("job")
    metric = selector.metric
    if metric == JOB_ASSIGNED:
        return chain.where(lambda job: job.is_assigned)
    if metric == JOB_UNASSIGNED:
        return chain.where(lambda job: not job.is_assigned)
    if metric in TAT_BUCKETS:
        return chain.where(lambda job: job_tat_bucket(job, as_of, urgent_days=urgent_days) == metric)
    return chain


def _client_metric(selector: MetricSelector, as_of: datetime) -> FilterChain:
    chain = FilterChain("client")
    metric = selector.metric
    if metric == CLIENT_WITH_WEBSITE:
        return chain.where(lambda client: bool(client.website))
    if metric == CLIENT_WITH_ADDRESS:
        return chain.where(lambda client: bool(client.address))
    if metric == CLIENT_ACTIVE:
        return chain.where(lambda client: client.active)
    if metric == CLIENT_ADDED_THIS_MONTH:
        return chain.where(
            lambda client: client.date_added is not None
            and client.date_added.year == as_of.year
            and client.date_added.month == as_of.month
        )
    return chain


def metric_chain(
    selector: MetricSelector,
    *,
    as_of: datetime,
    urgent_days: int = DEFAULT_URGENT_DAYS,
) -> FilterChain:
    if selector.kind == "candidate":
        return _candidate_metric(selector)
    if selector.kind == "job":
        return _job_metric(selector, as_of, urgent_days)
    return _client_metric(selector, as_of)


def search_predicate(kind: str, text: str) -> Predicate:
    needle = text.strip().lower()
    fields = SEARCH_FIELDS[kind]

    def _matches(record: Any) -> bool:
        for field in fields:
            value = getattr(record, field, None)
            if value and needle in str(value).lower():
                return True
        return False

    return _matches


def _ui_status_predicate(kind: str, raw: str) -> Predicate:
    value = raw.strip().lower()
    if kind == "candidate":
        status = normalize_status(raw)
        if status is None:
            raise ValueError(f"Unknown candidate status filter: {raw!r}")
        return status_predicate(frozenset({status}))
    if kind == "client":
        if value not in ("active", "inactive"):
            raise ValueError(f"Client status filter must be 'active' or 'inactive', got {raw!r}")
        wanted = value == "active"
        return lambda client: client.active is wanted
    return lambda job: (job.status or "").strip().lower() == value


def _ui_recruiter_predicate(kind: str, raw: str) -> Predicate:
    value = raw.strip().lower()
    if kind == "candidate":
        return lambda record: (record.recruiter_name or "").strip().lower() == value or (
            record.recruiter_id or ""
        ).lower() == value
    if kind == "job":
        return lambda job: value in (
            (job.primary_recruiter or "").strip().lower(),
            (job.secondary_recruiter or "").strip().lower(),
        )
    raise ValueError("Recruiter filter does not apply to clients")


def ui_chain(kind: str, filters: UiFilters | None) -> FilterChain:
    chain = FilterChain(kind)
    if filters is None:
        return chain
    if filters.search and filters.search.strip():
        chain = chain.where(search_predicate(kind, filters.search))
    if not _is_all(filters.status):
        chain = chain.where(_ui_status_predicate(kind, filters.status))
    if not _is_all(filters.recruiter):
        chain = chain.where(_ui_recruiter_predicate(kind, filters.recruiter))
    if filters.date_from is not None or filters.date_to is not None:
        chain = chain.where(window_predicate(kind, DateWindow(start=filters.date_from, end=filters.date_to)))
    return chain


def build_chain(
    selector: MetricSelector,
    ui_filters: UiFilters | None = None,
    *,
    window: DateWindow | None = None,
    as_of: datetime,
    urgent_days: int = DEFAULT_URGENT_DAYS,
) -> FilterChain:
    """Window, then base metric, then UI filters in their fixed order."""
    chain = FilterChain(selector.kind).where(window_predicate(selector.kind, window))
    chain = chain.extend(metric_chain(selector, as_of=as_of, urgent_days=urgent_days))
    return chain.extend(ui_chain(selector.kind, ui_filters))
