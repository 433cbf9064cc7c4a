from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator, model_validator

from recruiterhub.core.statuses import KIND_METRICS, METRIC_ALL, OUTCOME_STATUSES, EntityKind, normalize_status
from recruiterhub.schemas.common import EndOfDayDateTime, OptionalUtcDateTime


class DateWindow(BaseModel):
    """Optional [start, end] bound applied uniformly to one aggregation pass."""

    model_config = ConfigDict(frozen=True)

    start: OptionalUtcDateTime = None
    end: EndOfDayDateTime = None

    @model_validator(mode="after")
    def _ordered(self) -> "DateWindow":
        if self.start is not None and self.end is not None and self.start > self.end:
            raise ValueError("Window start must not be after window end")
        return self

    @property
    def bounded(self) -> bool:
        return self.start is not None or self.end is not None

    def contains(self, value: Optional[datetime]) -> bool:
        if value is None:
            # Undated records only belong to an unbounded window.
            return not self.bounded
        if self.start is not None and value < self.start:
            return False
        if self.end is not None and value > self.end:
            return False
        return True


class MetricSelector(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: EntityKind
    metric: str = METRIC_ALL
    recruiter_id: Optional[str] = None

    @field_validator("metric", mode="before")
    @classmethod
    def _normalize_metric(cls, value: Any, info: ValidationInfo) -> str:
        kind = info.data.get("kind")
        metric = str(value or METRIC_ALL).strip().lower().replace(" ", "_")
        if kind == "candidate" and metric not in OUTCOME_STATUSES:
            status = normalize_status(metric)
            if status is not None:
                metric = status.lower()
        if kind in KIND_METRICS and metric not in KIND_METRICS[kind]:
            raise ValueError(f"Unknown {kind} metric: {value!r}")
        return metric

    @model_validator(mode="after")
    def _recruiter_scope(self) -> "MetricSelector":
        if self.recruiter_id and self.kind != "candidate":
            raise ValueError("recruiter_id only applies to candidate drilldowns")
        return self


class UiFilters(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    search: str = ""
    status: Optional[str] = None
    recruiter: Optional[str] = None
    date_from: OptionalUtcDateTime = None
    date_to: EndOfDayDateTime = None
