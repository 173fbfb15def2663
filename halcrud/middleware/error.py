"""Translate exceptions escaping the routes into JSON error responses."""

from __future__ import annotations

import logging
from typing import Callable

from bson import ObjectId
from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from ..core import ids
from ..crud.exceptions import DuplicationException, ValidationException

logger = logging.getLogger(__name__)


class ErrorMiddleware(BaseHTTPMiddleware):
    """
    Map mapper errors to client responses and hide everything else behind a
    500 carrying an error id that also appears in the log.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except ValidationException as exc:
            return JSONResponse(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                content={"message": exc.message, "errors": jsonable_encoder(exc.errors)},
            )
        except DuplicationException as exc:
            return JSONResponse(
                status_code=status.HTTP_409_CONFLICT,
                content={"message": exc.message, "key": jsonable_encoder(exc.key, custom_encoder={ObjectId: str})},
            )
        except Exception:
            error_id = getattr(request.state, "request_id", None) or ids.new_uuid()
            logger.exception(
                "request_failed method=%s path=%s error_id=%s",
                request.method,
                request.url.path,
                error_id,
            )
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"message": "Internal server error.", "error_id": error_id},
            )
