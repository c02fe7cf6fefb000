"""
Rate limiting for AllOne
"""

import logging

from fastapi import FastAPI, Request
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from allone.core.config import settings
from allone.core.exceptions import RateLimitException, create_error_response

logger = logging.getLogger(__name__)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Answer throttled requests in the API envelope"""
    logger.warning("Rate limit exceeded", extra={"path": request.url.path, "limit": str(exc.detail)})
    error = RateLimitException()
    return create_error_response(
        request=request,
        status_code=error.status_code,
        error_code=error.error_code,
        message=error.message,
    )


def setup_rate_limiting(app: FastAPI) -> Limiter:
    """Add rate limiting to application"""
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[f"{settings.RATE_LIMIT_REQUESTS}/{settings.RATE_LIMIT_PERIOD} seconds"],
        enabled=settings.RATE_LIMIT_ENABLED,
    )
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)
    return limiter
