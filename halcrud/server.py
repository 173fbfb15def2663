"""
API server bootstrap.

`ApiServer` assembles a FastAPI application from CRUD controllers, wires the
Mongo client into the application lifespan and installs the middleware stack.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Iterable

import uvicorn
from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core import db, settings
from .crud.controller import CrudController
from .middleware import AuthMiddleware, ErrorMiddleware, ResponseTimeMiddleware

logger = logging.getLogger(__name__)


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or settings.log_level()),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


class ApiServer:
    def __init__(
        self,
        *,
        title: str = "halcrud",
        controllers: Iterable[CrudController] = (),
        routers: Iterable[APIRouter] = (),
        auth: bool = True,
        auth_exempt_paths: Iterable[str] = ("/health",),
        allowed_origins: Iterable[str] = (),
        connect_database: bool = True,
    ) -> None:
        self.connect_database = connect_database
        self.app = FastAPI(title=title, lifespan=self._lifespan)

        # Added innermost first: auth runs inside error handling, timing wraps both.
        if auth:
            self.app.add_middleware(AuthMiddleware, exempt_paths=auth_exempt_paths)
        self.app.add_middleware(ErrorMiddleware)
        self.app.add_middleware(ResponseTimeMiddleware)

        origins = list(allowed_origins)
        if origins:
            self.app.add_middleware(
                CORSMiddleware,
                allow_origins=origins,
                allow_credentials=True,
                allow_methods=["*"],
                allow_headers=["*"],
            )

        for controller in controllers:
            self.app.include_router(controller.router)
        for router in routers:
            self.app.include_router(router)

        @self.app.get("/health")
        def health() -> dict:
            return {"status": "ok"}

    @asynccontextmanager
    async def _lifespan(self, _: FastAPI):
        # One Mongo client per process.
        if self.connect_database:
            await db.init_client()
        try:
            yield
        finally:
            if self.connect_database:
                await db.close_client()

    def run(self, host: str | None = None, port: int | None = None) -> None:
        configure_logging()
        host = host or settings.server_host()
        port = port or settings.server_port()
        logger.info("server_starting host=%s port=%s", host, port)
        uvicorn.run(self.app, host=host, port=port, log_config=None)
