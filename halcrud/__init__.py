"""
CRUD resources over MongoDB with HAL responses.
"""

from .auth.security import AuthSecurityError
from .core.ids import new_uuid
from .crud import (
    CrudController,
    CrudMapper,
    DuplicationException,
    ListResult,
    MongoQueryFilter,
    Resource,
    SchemaValidator,
    ValidationException,
)
from .middleware import AuthMiddleware, ErrorMiddleware, ResponseTimeMiddleware
from .server import ApiServer

__version__ = "0.1.0"

__all__ = [
    "ApiServer",
    "AuthMiddleware",
    "AuthSecurityError",
    "CrudController",
    "CrudMapper",
    "DuplicationException",
    "ErrorMiddleware",
    "ListResult",
    "MongoQueryFilter",
    "Resource",
    "ResponseTimeMiddleware",
    "SchemaValidator",
    "ValidationException",
    "new_uuid",
]
