from __future__ import annotations

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger("rh.request")


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        fields = {"method": request.method, "path": request.url.path, "query": request.url.query or None}
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("request_failed", extra={**fields, "duration_ms": _elapsed_ms(start)})
            raise
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "request_completed",
            extra={**fields, "status_code": response.status_code, "duration_ms": _elapsed_ms(start)},
        )
        return response
