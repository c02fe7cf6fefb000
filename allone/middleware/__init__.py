"""Middleware modules for AllOne Backend"""

from .logging_middleware import LoggingMiddleware
from .rate_limit import setup_rate_limiting
from .request_id import RequestIDMiddleware
from .security_headers import SecurityHeadersMiddleware

__all__ = [
    "setup_rate_limiting",
    "SecurityHeadersMiddleware",
    "RequestIDMiddleware",
    "LoggingMiddleware",
]
