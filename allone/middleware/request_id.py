"""
Request ID middleware for AllOne Backend
Tags every request with an id that ends up in logs, error bodies and headers
"""

import logging
import re
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Caller ids are echoed into headers and log lines, so only plain tokens are kept
_ACCEPTED_ID = re.compile(r"^[A-Za-z0-9._-]{1,128}$")


def resolve_request_id(incoming: str) -> str:
    """The caller's id when it is a plain token, otherwise a fresh UUID"""
    if incoming and _ACCEPTED_ID.match(incoming):
        return incoming
    return str(uuid.uuid4())


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        incoming = request.headers.get(REQUEST_ID_HEADER, "")
        request_id = resolve_request_id(incoming)
        if incoming and incoming != request_id:
            logger.debug("Replaced malformed request id from client")
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
