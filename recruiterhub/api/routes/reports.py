from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from recruiterhub.api import deps
from recruiterhub.services.snapshot import DashboardSession

router = APIRouter(prefix="/ops/export", tags=["reports"])


@router.get("/{kind}")
async def download_export(
    query: deps.DrilldownQuery = Depends(deps.get_drilldown_query),
    dashboard: DashboardSession = Depends(deps.get_dashboard),
):
    try:
        filename, content = dashboard.export(query.selector, query.ui_filters, window=query.window)
    except ValueError as exc:
        raise deps.bad_request(exc) from exc
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
    return StreamingResponse(iter([content]), media_type="text/csv", headers=headers)
