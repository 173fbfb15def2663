"""
FastAPI router exposing one `CrudMapper` over HTTP.

Responses are HAL documents. Validation and duplication errors are left to
`ErrorMiddleware`; not-found results become 404s here.
"""

from __future__ import annotations

import logging
from typing import Any

from bson import ObjectId
from fastapi import APIRouter, Body, HTTPException, Query, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response
from pymongo.errors import DuplicateKeyError

from .exceptions import DuplicationException
from .hal import HAL_MEDIA_TYPE, Resource
from .mapper import CrudMapper

logger = logging.getLogger(__name__)


class RequestRouter:
    """`Router` backed by the Starlette application's named routes."""

    def __init__(self, request: Request) -> None:
        self.request = request

    def url(self, name: str, **path_params: Any) -> str:
        return str(self.request.app.url_path_for(name, **path_params))


class RequestContext:
    """`RoutingContext` for one incoming request."""

    def __init__(self, request: Request) -> None:
        self.router = RequestRouter(request)
        self.query = request.query_params


def hal_response(resource: Resource, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    content = jsonable_encoder(resource.to_dict(), custom_encoder={ObjectId: str})
    return JSONResponse(content=content, status_code=status_code, media_type=HAL_MEDIA_TYPE)


def acting_user_id(request: Request) -> Any:
    user = getattr(request.state, "user", None)
    if isinstance(user, dict):
        return user.get("sub")
    return None


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Resource not found.")


class CrudController:
    def __init__(self, mapper: CrudMapper, *, prefix: str, with_count: bool = False, tags: list[str] | None = None) -> None:
        self.mapper = mapper
        self.with_count = with_count
        self.router = APIRouter(prefix=prefix, tags=tags or [mapper.collection_name])
        self._register()

    def _register(self) -> None:
        router = self.router
        mapper = self.mapper

        @router.get("", name=mapper.list_route)
        async def list_resources(request: Request) -> JSONResponse:
            result = await mapper.list(request.query_params, with_count=self.with_count)
            return hal_response(mapper.to_hal_collection(result, RequestContext(request)))

        @router.get("/{id}", name=mapper.detail_route)
        async def get_resource(id: str, request: Request) -> JSONResponse:
            entity = await mapper.detail(id)
            if entity is None:
                raise _not_found()
            return hal_response(mapper.to_hal(entity, RequestRouter(request)))

        @router.post("", status_code=status.HTTP_201_CREATED)
        async def create_resource(request: Request, payload: dict[str, Any] = Body(...)) -> JSONResponse:
            try:
                entity = await mapper.create(payload)
            except DuplicateKeyError as exc:
                logger.info("crud_duplicate collection=%s key=%s", mapper.collection_name, exc.details)
                key = (exc.details or {}).get("keyValue")
                raise DuplicationException(key=key) from exc
            return hal_response(mapper.to_hal(entity, RequestRouter(request)), status.HTTP_201_CREATED)

        @router.patch("/{id}")
        async def update_resource(id: str, request: Request, payload: dict[str, Any] = Body(...)) -> JSONResponse:
            try:
                entity = await mapper.update(id, payload)
            except DuplicateKeyError as exc:
                key = (exc.details or {}).get("keyValue")
                raise DuplicationException(key=key) from exc
            if entity is None:
                raise _not_found()
            return hal_response(mapper.to_hal(entity, RequestRouter(request)))

        @router.delete("/{id}")
        async def delete_resource(
            id: str,
            request: Request,
            permanent: bool = Query(False),
        ) -> Response:
            if permanent:
                removed = await mapper.remove(id)
                if removed is None:
                    raise _not_found()
                return Response(status_code=status.HTTP_204_NO_CONTENT)

            entity = await mapper.delete(id, acting_user_id(request))
            if entity is None:
                raise _not_found()
            return hal_response(mapper.to_hal(entity, RequestRouter(request)))
