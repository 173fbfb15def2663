"""Response timing and access logging."""

from __future__ import annotations

import logging
import time
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from ..core import ids

logger = logging.getLogger(__name__)

RESPONSE_TIME_HEADER = "X-Response-Time"
REQUEST_ID_HEADER = "X-Request-Id"


class ResponseTimeMiddleware(BaseHTTPMiddleware):
    """Add `X-Response-Time` and `X-Request-Id` headers and log each request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        incoming = request.headers.get(REQUEST_ID_HEADER, "")
        request_id = incoming if ids.is_uuid(incoming) else ids.new_uuid()
        request.state.request_id = request_id

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        response.headers[RESPONSE_TIME_HEADER] = f"{duration_ms:.2f}ms"
        response.headers[REQUEST_ID_HEADER] = request_id
        logger.info(
            "request_completed method=%s path=%s status=%s duration_ms=%.2f request_id=%s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            request_id,
        )
        return response
