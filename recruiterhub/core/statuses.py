from __future__ import annotations

from typing import Literal


# Canonical candidate statuses driving every funnel metric.
SUBMITTED = "Submitted"
PENDING = "Pending"
INTERVIEW = "Interview"
OFFER = "Offer"
JOINED = "Joined"
REJECTED = "Rejected"


ALL_STATUSES: tuple[str, ...] = (
    SUBMITTED,
    PENDING,
    INTERVIEW,
    OFFER,
    JOINED,
    REJECTED,
)


# Interview rounds recorded as candidate statuses by recruiters.
_ALIASES = {
    "l1_interview": INTERVIEW,
    "l2_interview": INTERVIEW,
    "final_interview": INTERVIEW,
    "technical_interview": INTERVIEW,
    "hr_interview": INTERVIEW,
    "interviewing": INTERVIEW,
    "offered": OFFER,
    "hired": JOINED,
}

_CANONICAL = {status.lower(): status for status in ALL_STATUSES}


EntityKind = Literal["candidate", "job", "client"]
ENTITY_KINDS: tuple[str, ...] = ("candidate", "job", "client")

# Plural names used for fetch endpoints and export file names.
KIND_PLURALS: dict[str, str] = {
    "candidate": "candidates",
    "job": "jobs",
    "client": "clients",
}


TAT_EXPIRED = "expired"
TAT_URGENT = "urgent"
TAT_NORMAL = "normal"
TAT_UNKNOWN = "unknown"

TAT_BUCKETS: tuple[str, ...] = (TAT_EXPIRED, TAT_URGENT, TAT_NORMAL, TAT_UNKNOWN)
DEFAULT_URGENT_DAYS = 3


# Recruiter drilldown outcomes, each a disjoint status subset of submissions.
OUTCOME_SUBMISSIONS = "submissions"
OUTCOME_OFFERS = "offers"
OUTCOME_JOINED = "joined"
OUTCOME_REJECTED = "rejected"
OUTCOME_PENDING = "pending"

OUTCOME_STATUSES: dict[str, frozenset[str] | None] = {
    OUTCOME_SUBMISSIONS: None,
    OUTCOME_OFFERS: frozenset({OFFER}),
    OUTCOME_JOINED: frozenset({JOINED}),
    OUTCOME_REJECTED: frozenset({REJECTED}),
    OUTCOME_PENDING: frozenset({PENDING, SUBMITTED}),
}

METRIC_ALL = "all"
JOB_ASSIGNED = "assigned"
JOB_UNASSIGNED = "unassigned"
CLIENT_WITH_WEBSITE = "with_website"
CLIENT_WITH_ADDRESS = "with_address"
CLIENT_ADDED_THIS_MONTH = "added_this_month"
CLIENT_ACTIVE = "active"

KIND_METRICS: dict[str, frozenset[str]] = {
    "candidate": frozenset({METRIC_ALL, *(status.lower() for status in ALL_STATUSES), *OUTCOME_STATUSES}),
    "job": frozenset({METRIC_ALL, JOB_ASSIGNED, JOB_UNASSIGNED, *TAT_BUCKETS}),
    "client": frozenset(
        {METRIC_ALL, CLIENT_WITH_WEBSITE, CLIENT_WITH_ADDRESS, CLIENT_ADDED_THIS_MONTH, CLIENT_ACTIVE}
    ),
}


def normalize_status(raw: str | None) -> str | None:
    if raw is None:
        return None
    cleaned = raw.strip()
    if not cleaned:
        return None
    key = cleaned.lower().replace(" ", "_").replace("-", "_")
    if key in _ALIASES:
        return _ALIASES[key]
    return _CANONICAL.get(key)


def tat_bucket(days_left: int | None, *, urgent_days: int = DEFAULT_URGENT_DAYS) -> str:
    if days_left is None:
        return TAT_UNKNOWN
    if days_left < 0:
        return TAT_EXPIRED
    if days_left <= urgent_days:
        return TAT_URGENT
    return TAT_NORMAL


def normalize_kind(raw: str | None) -> str:
    value = (raw or "").strip().lower()
    for kind, plural in KIND_PLURALS.items():
        if value in (kind, plural):
            return kind
    raise ValueError(f"Unknown entity kind: {raw!r}")
