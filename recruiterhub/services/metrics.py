"""Dashboard metric aggregation over one snapshot of the source collections."""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Sequence

from recruiterhub.core.datetime_utils import utcnow
from recruiterhub.core.statuses import (
    ALL_STATUSES,
    CLIENT_ACTIVE,
    CLIENT_ADDED_THIS_MONTH,
    CLIENT_WITH_ADDRESS,
    CLIENT_WITH_WEBSITE,
    DEFAULT_URGENT_DAYS,
    JOB_ASSIGNED,
    JOB_UNASSIGNED,
    JOINED,
    OUTCOME_JOINED,
    OUTCOME_OFFERS,
    OUTCOME_PENDING,
    OUTCOME_REJECTED,
    OUTCOME_STATUSES,
    OUTCOME_SUBMISSIONS,
    TAT_EXPIRED,
    TAT_NORMAL,
    TAT_UNKNOWN,
    TAT_URGENT,
)
from recruiterhub.schemas.candidate import CandidateRecord
from recruiterhub.schemas.client import ClientRecord, RecruiterRecord
from recruiterhub.schemas.dashboard import ClientStats, DashboardMetrics, JobStats, RecruiterStat, TatBuckets
from recruiterhub.schemas.filters import DateWindow, MetricSelector
from recruiterhub.schemas.job import JobRecord
from recruiterhub.services.filters import metric_chain, window_filter

RECRUITER_OUTCOMES: tuple[str, ...] = tuple(OUTCOME_STATUSES)


def round1(value: float) -> float:
    return round(value, 1)


def recruiter_success_rate(submissions: int, joined: int) -> float:
    if submissions <= 0:
        return 0.0
    return round1(100 * joined / submissions)


def success_ratio(total: int, joined: int) -> float:
    if total <= 0:
        return 0.0
    return joined / total


def format_percentage(ratio: float) -> str:
    return f"{ratio * 100:.2f}%"


def status_counts(candidates: Sequence[CandidateRecord]) -> dict[str, int]:
    counts = Counter(candidate.status for candidate in candidates)
    return {status: counts.get(status, 0) for status in ALL_STATUSES}


def tat_buckets(
    jobs: Sequence[JobRecord],
    *,
    as_of: datetime,
    urgent_days: int = DEFAULT_URGENT_DAYS,
) -> TatBuckets:
    def _count(bucket: str) -> int:
        selector = MetricSelector(kind="job", metric=bucket)
        return metric_chain(selector, as_of=as_of, urgent_days=urgent_days).count(jobs)

    return TatBuckets(
        expired=_count(TAT_EXPIRED),
        urgent=_count(TAT_URGENT),
        normal=_count(TAT_NORMAL),
        unknown=_count(TAT_UNKNOWN),
    )


def job_stats(jobs: Sequence[JobRecord], *, as_of: datetime) -> JobStats:
    assigned = metric_chain(MetricSelector(kind="job", metric=JOB_ASSIGNED), as_of=as_of).count(jobs)
    unassigned = metric_chain(MetricSelector(kind="job", metric=JOB_UNASSIGNED), as_of=as_of).count(jobs)
    return JobStats(total=len(jobs), assigned=assigned, unassigned=unassigned)


def _recruiter_ids(
    candidates: Sequence[CandidateRecord],
    recruiters: Sequence[RecruiterRecord] | None,
) -> dict[str, str | None]:
    names: dict[str, str | None] = {}
    for recruiter in recruiters or ():
        names[recruiter.id] = recruiter.name
    for candidate in candidates:
        if candidate.recruiter_id and not names.get(candidate.recruiter_id):
            names[candidate.recruiter_id] = candidate.recruiter_name
    return names


def recruiter_stats(
    candidates: Sequence[CandidateRecord],
    *,
    as_of: datetime,
    recruiters: Sequence[RecruiterRecord] | None = None,
) -> list[RecruiterStat]:
    stats: list[RecruiterStat] = []
    for recruiter_id, recruiter_name in _recruiter_ids(candidates, recruiters).items():
        outcomes = {
            outcome: metric_chain(
                MetricSelector(kind="candidate", metric=outcome, recruiter_id=recruiter_id),
                as_of=as_of,
            ).count(candidates)
            for outcome in RECRUITER_OUTCOMES
        }
        submissions = outcomes[OUTCOME_SUBMISSIONS]
        joined = outcomes[OUTCOME_JOINED]
        stats.append(
            RecruiterStat(
                recruiter_id=recruiter_id,
                recruiter_name=recruiter_name,
                submissions=submissions,
                offers=outcomes[OUTCOME_OFFERS],
                joined=joined,
                rejected=outcomes[OUTCOME_REJECTED],
                pending=outcomes[OUTCOME_PENDING],
                success_rate=recruiter_success_rate(submissions, joined),
            )
        )
    stats.sort(key=lambda item: (-item.submissions, item.recruiter_id))
    return stats


def active_recruiter_count(recruiters: Sequence[RecruiterRecord] | None) -> int:
    # Roster size, not windowed: a recruiter is active until flagged otherwise.
    return sum(1 for recruiter in recruiters or () if recruiter.active)


def client_stats(clients: Sequence[ClientRecord], *, as_of: datetime) -> ClientStats:
    def _count(metric: str) -> int:
        return metric_chain(MetricSelector(kind="client", metric=metric), as_of=as_of).count(clients)

    industries = Counter((client.industry or "Unspecified") for client in clients)
    return ClientStats(
        total=len(clients),
        active=_count(CLIENT_ACTIVE),
        with_website=_count(CLIENT_WITH_WEBSITE),
        with_address=_count(CLIENT_WITH_ADDRESS),
        added_this_month=_count(CLIENT_ADDED_THIS_MONTH),
        by_industry=dict(sorted(industries.items())),
    )


def aggregate(
    candidates: Sequence[CandidateRecord] | None,
    jobs: Sequence[JobRecord] | None,
    clients: Sequence[ClientRecord] | None,
    window: DateWindow | None = None,
    *,
    as_of: datetime | None = None,
    recruiters: Sequence[RecruiterRecord] | None = None,
    urgent_days: int = DEFAULT_URGENT_DAYS,
) -> DashboardMetrics:
    """
    Compute every dashboard number from one window-filtered copy of each collection.
    Missing collections count as empty.
    """
    as_of = as_of or utcnow()
    window = window or DateWindow()

    windowed_candidates = window_filter("candidate", candidates or (), window)
    windowed_jobs = window_filter("job", jobs or (), window)
    windowed_clients = window_filter("client", clients or (), window)

    counts = status_counts(windowed_candidates)
    total = len(windowed_candidates)
    ratio = success_ratio(total, counts[JOINED])

    return DashboardMetrics(
        window=window,
        as_of=as_of,
        total_candidates=total,
        status_counts=counts,
        success_rate=ratio,
        success_rate_display=format_percentage(ratio),
        tat_buckets=tat_buckets(windowed_jobs, as_of=as_of, urgent_days=urgent_days),
        job_stats=job_stats(windowed_jobs, as_of=as_of),
        recruiter_stats=recruiter_stats(windowed_candidates, as_of=as_of, recruiters=recruiters),
        active_recruiters=active_recruiter_count(recruiters),
        client_stats=client_stats(windowed_clients, as_of=as_of),
    )
