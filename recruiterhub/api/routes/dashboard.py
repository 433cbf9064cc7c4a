from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, Query, Request
from starlette.responses import StreamingResponse

from recruiterhub.api import deps
from recruiterhub.schemas.dashboard import DashboardOut, DrilldownOut, RefreshOut
from recruiterhub.services.snapshot import DashboardClosed, DashboardSession

router = APIRouter(prefix="/ops", tags=["dashboard"])


@router.get("/dashboard", response_model=DashboardOut)
async def get_dashboard_metrics(
    window_from: str | None = Query(default=None, alias="from"),
    window_to: str | None = Query(default=None, alias="to"),
    dashboard: DashboardSession = Depends(deps.get_dashboard),
):
    window = deps.build_window(window_from, window_to)
    return DashboardOut(
        metrics=dashboard.metrics(window),
        notices=dashboard.notices,
        fetched_at=dashboard.fetched_at,
    )


@router.post("/dashboard/refresh", response_model=RefreshOut)
async def refresh_dashboard(dashboard: DashboardSession = Depends(deps.get_dashboard)):
    try:
        notices = await dashboard.refresh()
    except DashboardClosed as exc:
        raise deps.unavailable(exc) from exc
    return RefreshOut(notices=notices, fetched_at=dashboard.fetched_at)


@router.get("/drilldown/{kind}", response_model=DrilldownOut)
async def get_drilldown(
    query: deps.DrilldownQuery = Depends(deps.get_drilldown_query),
    dashboard: DashboardSession = Depends(deps.get_dashboard),
):
    try:
        records = dashboard.drilldown(query.selector, query.ui_filters, window=query.window)
    except ValueError as exc:
        raise deps.bad_request(exc) from exc
    return DrilldownOut(
        kind=query.selector.kind,
        metric=query.selector.metric,
        recruiter_id=query.selector.recruiter_id,
        total=len(records),
        items=[record.model_dump(mode="json") for record in records],
    )


@router.get("/events/stream")
async def stream_events(
    request: Request,
    dashboard: DashboardSession = Depends(deps.get_dashboard),
):
    queue = await dashboard.bus.subscribe()

    async def event_generator():
        try:
            while True:
                if await request.is_disconnected():
                    break
                try:
                    data = await asyncio.wait_for(queue.get(), timeout=15)
                    yield f"data: {data}\n\n"
                except asyncio.TimeoutError:
                    yield "event: ping\ndata: {}\n\n"
        finally:
            await dashboard.bus.unsubscribe(queue)

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )
