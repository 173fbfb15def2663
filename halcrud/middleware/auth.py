"""Bearer-token authentication middleware."""

from __future__ import annotations

import logging
from typing import Callable, Iterable

from fastapi import Request, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from ..auth import security

logger = logging.getLogger(__name__)

DEFAULT_EXEMPT_PATHS = ("/health",)


class AuthMiddleware(BaseHTTPMiddleware):
    """
    Require a valid access token on every request outside `exempt_paths`.

    Decoded claims are stored on `request.state.user`.
    """

    def __init__(self, app, *, exempt_paths: Iterable[str] = DEFAULT_EXEMPT_PATHS) -> None:
        super().__init__(app)
        self.exempt_paths = frozenset(exempt_paths)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.method == "OPTIONS" or request.url.path in self.exempt_paths:
            return await call_next(request)

        try:
            token = security.extract_bearer_token(request.headers.get("Authorization"))
            request.state.user = security.decode_access_token(token)
        except security.AuthSecurityError as exc:
            logger.info("auth_rejected path=%s reason=%s", request.url.path, exc)
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": str(exc)},
                headers={"WWW-Authenticate": "Bearer"},
            )

        return await call_next(request)
