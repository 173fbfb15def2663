"""
Errors raised at the mapper boundary.

Not-found is never an exception here: mapper operations return `None`.
"""

from __future__ import annotations

from typing import Any


class CrudError(Exception):
    pass


class ValidationException(CrudError):
    """
    Input failed schema validation.

    `errors` holds every violation, not only the first one.
    """

    def __init__(self, errors: list[dict[str, Any]], message: str = "Validation failed.") -> None:
        super().__init__(message)
        self.message = message
        self.errors = list(errors)

    def __str__(self) -> str:
        fields = ", ".join(str(e.get("field") or "<root>") for e in self.errors)
        return f"{self.message} ({fields})" if fields else self.message


class DuplicationException(CrudError):
    """
    A unique constraint of the store was violated.

    The mapper never raises this; store adapters and controllers translate
    the driver's duplicate-key error into it.
    """

    def __init__(self, message: str = "Resource already exists.", *, key: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.key = key
