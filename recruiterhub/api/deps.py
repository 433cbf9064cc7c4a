from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from fastapi import Depends, HTTPException, Query, Request, status
from pydantic import ValidationError

from recruiterhub.core.datetime_utils import parse_optional_datetime, parse_optional_end_of_day
from recruiterhub.core.statuses import normalize_kind
from recruiterhub.schemas.filters import DateWindow, MetricSelector, UiFilters
from recruiterhub.services.notifications import NotificationStore
from recruiterhub.services.snapshot import DashboardSession


def bad_request(exc: Exception) -> HTTPException:
    if isinstance(exc, ValidationError):
        detail = "; ".join(error.get("msg", "invalid value") for error in exc.errors())
    else:
        detail = str(exc)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail or "Invalid request.")


def unavailable(exc: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc) or "Service unavailable.")


def get_dashboard(request: Request) -> DashboardSession:
    dashboard = getattr(request.app.state, "dashboard", None)
    if dashboard is None or dashboard.closed:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Dashboard is not running.")
    return dashboard


def get_notification_store(dashboard: DashboardSession = Depends(get_dashboard)) -> NotificationStore:
    return dashboard.store


def parse_query_datetime(raw: str | None, *, end_of_day: bool = False) -> datetime | None:
    parse = parse_optional_end_of_day if end_of_day else parse_optional_datetime
    try:
        return parse(raw)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid date format.") from exc


def build_window(raw_from: str | None, raw_to: str | None) -> DateWindow:
    start = parse_query_datetime(raw_from)
    end = parse_query_datetime(raw_to, end_of_day=True)
    try:
        return DateWindow(start=start, end=end)
    except ValidationError as exc:
        raise bad_request(exc) from exc


def build_selector(kind: str, metric: str | None, recruiter_id: str | None) -> MetricSelector:
    try:
        return MetricSelector(kind=normalize_kind(kind), metric=metric or "all", recruiter_id=recruiter_id or None)
    except ValueError as exc:
        raise bad_request(exc) from exc


def build_ui_filters(
    *,
    search: str | None,
    status_filter: str | None,
    recruiter: str | None,
    date_from: str | None,
    date_to: str | None,
) -> UiFilters:
    try:
        return UiFilters(
            search=search or "",
            status=status_filter,
            recruiter=recruiter,
            date_from=parse_query_datetime(date_from),
            date_to=parse_query_datetime(date_to, end_of_day=True),
        )
    except ValidationError as exc:
        raise bad_request(exc) from exc


@dataclass(frozen=True)
class DrilldownQuery:
    selector: MetricSelector
    ui_filters: UiFilters
    window: DateWindow


def get_drilldown_query(
    kind: str,
    metric: str | None = Query(default=None),
    recruiter_id: str | None = Query(default=None),
    search: str | None = Query(default=None),
    status_filter: str | None = Query(default=None, alias="status"),
    recruiter: str | None = Query(default=None),
    date_from: str | None = Query(default=None),
    date_to: str | None = Query(default=None),
    window_from: str | None = Query(default=None, alias="from"),
    window_to: str | None = Query(default=None, alias="to"),
) -> DrilldownQuery:
    return DrilldownQuery(
        selector=build_selector(kind, metric, recruiter_id),
        ui_filters=build_ui_filters(
            search=search,
            status_filter=status_filter,
            recruiter=recruiter,
            date_from=date_from,
            date_to=date_to,
        ),
        window=build_window(window_from, window_to),
    )
