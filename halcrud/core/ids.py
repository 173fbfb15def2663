"""
Random identifiers for requests and error reports.
"""

from __future__ import annotations

import uuid


def new_uuid() -> str:
    return str(uuid.uuid4())


def is_uuid(value: str) -> bool:
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True
