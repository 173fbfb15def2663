"""
Starlette middleware used by `ApiServer`.
"""

from .auth import AuthMiddleware
from .error import ErrorMiddleware
from .response_time import ResponseTimeMiddleware

__all__ = ["AuthMiddleware", "ErrorMiddleware", "ResponseTimeMiddleware"]
