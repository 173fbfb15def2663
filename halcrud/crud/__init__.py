"""
Resource mapping: query translation, validation, HAL rendering and the
mapper that ties them to one Mongo collection.
"""

from .controller import CrudController, RequestContext, RequestRouter
from .exceptions import CrudError, DuplicationException, ValidationException
from .hal import HAL_MEDIA_TYPE, Resource
from .mapper import CrudMapper, ListResult
from .query_filter import MongoQueryFilter
from .validation import SchemaValidator

__all__ = [
    "CrudController",
    "CrudError",
    "CrudMapper",
    "DuplicationException",
    "HAL_MEDIA_TYPE",
    "ListResult",
    "MongoQueryFilter",
    "RequestContext",
    "RequestRouter",
    "Resource",
    "SchemaValidator",
    "ValidationException",
]
