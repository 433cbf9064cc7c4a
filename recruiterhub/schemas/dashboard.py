from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel

from recruiterhub.schemas.filters import DateWindow


class RecruiterStat(BaseModel):
    recruiter_id: str
    recruiter_name: Optional[str] = None
    submissions: int
    offers: int
    joined: int
    rejected: int
    pending: int
    success_rate: float


class TatBuckets(BaseModel):
    expired: int
    urgent: int
    normal: int
    unknown: int


class JobStats(BaseModel):
    total: int
    assigned: int
    unassigned: int


class ClientStats(BaseModel):
    total: int
    active: int
    with_website: int
    with_address: int
    added_this_month: int
    by_industry: dict[str, int]


class DashboardMetrics(BaseModel):
    window: DateWindow
    as_of: datetime
    total_candidates: int
    status_counts: dict[str, int]
    success_rate: float
    success_rate_display: str
    tat_buckets: TatBuckets
    job_stats: JobStats
    recruiter_stats: list[RecruiterStat]
    active_recruiters: int
    client_stats: ClientStats


class FetchNotice(BaseModel):
    kind: str
    message: str
    # False when the collection loaded but some records were skipped.
    failed: bool = True
    skipped: int = 0


class DashboardOut(BaseModel):
    metrics: DashboardMetrics
    notices: list[FetchNotice]
    fetched_at: Optional[datetime] = None


class RefreshOut(BaseModel):
    notices: list[FetchNotice]
    fetched_at: Optional[datetime] = None


class DrilldownOut(BaseModel):
    kind: str
    metric: str
    recruiter_id: Optional[str] = None
    total: int
    items: list[dict[str, Any]]
