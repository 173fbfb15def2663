"""
Document identity.

Mongo stores identity in `_id`, usually as an `ObjectId`. Callers outside the
store only ever see the string form under `id`.
"""

from __future__ import annotations

from typing import Any, Union

from bson import ObjectId

STORAGE_ID_FIELD = "_id"
EXTERNAL_ID_FIELD = "id"

Identity = Union[ObjectId, str]


def to_identity(value: Any) -> Identity:
    """
    Convert an external id to the value stored in `_id`.

    Strings that are valid ObjectIds become ObjectIds. Anything else is kept
    as a string, so a malformed id simply matches no document.
    """
    if isinstance(value, ObjectId):
        return value
    raw = str(value).strip()
    if ObjectId.is_valid(raw):
        return ObjectId(raw)
    return raw


def render_id(value: Identity) -> str:
    return str(value)


def identity_filter(value: Any) -> dict[str, Identity]:
    return {STORAGE_ID_FIELD: to_identity(value)}


def document_id(document: dict[str, Any]) -> Identity | None:
    if STORAGE_ID_FIELD in document:
        return document[STORAGE_ID_FIELD]
    if EXTERNAL_ID_FIELD in document:
        return to_identity(document[EXTERNAL_ID_FIELD])
    return None
