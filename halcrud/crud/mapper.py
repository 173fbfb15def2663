"""
Generic CRUD mapper for one Mongo collection.

Translates list/detail/create/update/delete calls into collection queries,
validates payloads against the resource's JSON schema, keeps soft-delete
bookkeeping and renders documents as HAL resources.

Each operation is at most two sequential round-trips (read then write, or
find then count). They are not wrapped in a transaction, so a concurrent
write between the two can be lost. Store errors propagate unchanged.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Protocol
from urllib.parse import quote, urlencode

from pymongo import DESCENDING

from ..core import settings
from . import identity
from .hal import Resource
from .query_filter import MongoQueryFilter
from .validation import SchemaValidator

logger = logging.getLogger(__name__)

DELETION_FIELDS = ("deleted", "deletedAt", "deletedBy")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def default_query_filter() -> MongoQueryFilter:
    return MongoQueryFilter(
        custom={
            "between": "updatedAt",
            "after": "updatedAt",
            "before": "updatedAt",
        },
        blacklist={"fields", "page", "sort", "order"},
    )


class Router(Protocol):
    def url(self, name: str, **path_params: Any) -> str:
        ...


class RoutingContext(Protocol):
    router: Router
    query: Mapping[str, Any]


@dataclass
class ListResult:
    items: list[dict[str, Any]]
    page: int
    count: int | None = None
    page_count: int | None = None


def _first(params: Mapping[str, Any], key: str) -> str:
    value = params.get(key)
    if isinstance(value, (list, tuple)):
        value = value[-1] if value else None
    return "" if value is None else str(value)


def parse_page(params: Mapping[str, Any]) -> int:
    raw = _first(params, "page").strip()
    try:
        page = int(raw)
    except ValueError:
        return 1
    return page if page >= 1 else 1


def parse_projection(params: Mapping[str, Any]) -> dict[str, int] | None:
    fields = [f.strip() for f in _first(params, "fields").split(",")]
    projection = {f: 1 for f in fields if f}
    return projection or None


def compute_page_count(total: int, returned: int) -> int:
    """
    Number of pages, dividing by the size of the page just read.

    A short last page therefore reports more pages than a fixed-size split
    would. An empty page reports 0.
    """
    if returned <= 0:
        return 0
    return math.ceil(total / returned)


def _stringify_query(query: Mapping[str, Any]) -> str:
    pairs: list[tuple[str, Any]] = []
    for key in sorted(query):
        value = query[key]
        if isinstance(value, (list, tuple)):
            pairs.extend((key, v) for v in value)
        else:
            pairs.append((key, value))
    return urlencode(pairs, quote_via=quote)


def _query_dict(query: Any) -> dict[str, Any]:
    if hasattr(query, "multi_items"):
        grouped: dict[str, Any] = {}
        for key, value in query.multi_items():
            if key in grouped:
                existing = grouped[key]
                grouped[key] = (existing if isinstance(existing, list) else [existing]) + [value]
            else:
                grouped[key] = value
        return grouped
    return dict(query or {})


class CrudMapper:
    def __init__(
        self,
        collection: Any,
        collection_name: str,
        detail_route: str,
        list_route: str,
        schema: Mapping[str, Any],
        *,
        validator: SchemaValidator | None = None,
        query_filter: MongoQueryFilter | None = None,
        page_size: int = settings.DEFAULT_PAGE_SIZE,
    ) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be positive.")
        self.collection = collection
        self.collection_name = collection_name
        self.detail_route = detail_route
        self.list_route = list_route
        self.validator = validator or SchemaValidator(schema)
        self.query_filter = query_filter or default_query_filter()
        self.page_size = page_size

    def _visible_filter(self, id: Any, with_deleted: bool) -> dict[str, Any]:
        query: dict[str, Any] = identity.identity_filter(id)
        if not with_deleted:
            query["deleted"] = {"$ne": True}
        return query

    async def list(self, params: Mapping[str, Any], with_count: bool = False) -> ListResult:
        query = self.query_filter.parse(params)
        projection = parse_projection(params)
        page = parse_page(params)
        skip = (page - 1) * self.page_size

        cursor = (
            self.collection.find(query, projection)
            .sort("createdAt", DESCENDING)
            .skip(skip)
            .limit(self.page_size)
        )
        items = await cursor.to_list(length=self.page_size)
        result = ListResult(items=items, page=page)

        if with_count:
            total = await self.collection.count_documents(query)
            result.count = total
            result.page_count = compute_page_count(total, len(items))

        logger.debug(
            "crud_list collection=%s page=%s returned=%s filter=%s",
            self.collection_name,
            page,
            len(items),
            query,
        )
        return result

    async def detail(self, id: Any, with_deleted: bool = False) -> dict[str, Any] | None:
        return await self.collection.find_one(self._visible_filter(id, with_deleted))

    async def create(self, data: Mapping[str, Any]) -> dict[str, Any]:
        clean = self.validate_all(data)
        document = self.to_storage(clean)
        document["createdAt"] = _utc_now()
        document["updatedAt"] = document["createdAt"]

        inserted = await self.collection.insert_one(document)
        document.setdefault(identity.STORAGE_ID_FIELD, inserted.inserted_id)
        logger.info(
            "crud_created collection=%s id=%s",
            self.collection_name,
            identity.render_id(document[identity.STORAGE_ID_FIELD]),
        )
        return document

    async def update(self, id: Any, data: Mapping[str, Any], with_deleted: bool = False) -> dict[str, Any] | None:
        entity = await self.collection.find_one(self._visible_filter(id, with_deleted))
        if entity is None:
            return None

        changes = self.to_storage(self.validate(data))
        changes.pop(identity.STORAGE_ID_FIELD, None)
        changes["updatedAt"] = _utc_now()
        entity.update(changes)

        await self.collection.update_one(
            identity.identity_filter(id),
            {"$set": changes},
            upsert=False,
        )
        return entity

    async def delete(self, id: Any, user_id: Any = None) -> dict[str, Any] | None:
        entity = await self.collection.find_one(self._visible_filter(id, False))
        if entity is None:
            return None

        changes: dict[str, Any] = {
            "deleted": True,
            "deletedAt": _utc_now(),
        }
        if user_id is not None:
            changes["deletedBy"] = user_id
        entity.update(changes)

        await self.collection.update_one(
            identity.identity_filter(id),
            {"$set": changes},
            upsert=False,
        )
        logger.info("crud_soft_deleted collection=%s id=%s by=%s", self.collection_name, id, user_id)
        return entity

    async def remove(self, id: Any) -> bool | None:
        entity = await self.collection.find_one(identity.identity_filter(id))
        if entity is None:
            return None

        await self.collection.delete_one(identity.identity_filter(id))
        logger.info("crud_removed collection=%s id=%s", self.collection_name, id)
        return True

    def to_external(self, document: Mapping[str, Any]) -> dict[str, Any]:
        doc_id = identity.document_id(document)
        external: dict[str, Any] = {}
        if doc_id is not None:
            external[identity.EXTERNAL_ID_FIELD] = identity.render_id(doc_id)
        external.update(
            (k, v)
            for k, v in document.items()
            if k not in (identity.STORAGE_ID_FIELD, identity.EXTERNAL_ID_FIELD)
        )
        if external.get("deleted") is not True:
            for field in DELETION_FIELDS:
                external.pop(field, None)
        return external

    def to_hal(self, document: Mapping[str, Any], router: Router) -> Resource:
        payload = self.to_external(document)
        if document.get("deleted") is True:
            if document.get("deletedAt"):
                payload["deletedAt"] = document["deletedAt"]
            if document.get("deletedBy"):
                payload["deletedBy"] = document["deletedBy"]

        doc_id = identity.document_id(document)
        href = router.url(self.detail_route, id=identity.render_id(doc_id))
        return Resource(payload, href)

    def to_hal_collection(self, result: ListResult, ctx: RoutingContext) -> Resource:
        entities = [self.to_hal(item, ctx.router) for item in result.items]

        query = _query_dict(ctx.query)
        base_url = ctx.router.url(self.list_route)
        collection_url = base_url
        if _stringify_query(query):
            collection_url += "?" + _stringify_query(query)

        pagination: dict[str, Any] = {
            "_page": result.page,
            "_count": len(entities),
        }
        if result.count is not None:
            pagination["_total_items"] = result.count or 0
        if result.page_count is not None:
            pagination["_page_count"] = result.page_count or 1

        collection = Resource(pagination, collection_url)

        def page_url(page: int) -> str:
            return base_url + "?" + _stringify_query({**query, "page": page})

        if result.page > 2:
            collection.link("first", page_url(1))
        if result.page > 1:
            collection.link("prev", page_url(result.page - 1))
        collection.link("next", page_url(result.page + 1))
        if result.page_count is not None and result.page < result.page_count - 1:
            collection.link("last", page_url(result.page_count))

        collection.embed(self.collection_name, entities, False)
        return collection

    def to_storage(self, document: Mapping[str, Any]) -> dict[str, Any]:
        data = dict(document)
        external_id = data.pop(identity.EXTERNAL_ID_FIELD, None)
        if external_id:
            data[identity.STORAGE_ID_FIELD] = identity.to_identity(external_id)
        return data

    def validate(self, data: Mapping[str, Any], validate_all: bool = False) -> dict[str, Any]:
        return self.validator.validate(data, enforce_required=validate_all)

    def validate_all(self, data: Mapping[str, Any]) -> dict[str, Any]:
        return self.validate(data, True)
