"""Per-request correlation IDs.

A sign round trip is four HTTP calls from one client run (save, sign,
download, remove). Clients may send the same X-Request-ID on each of them;
otherwise every call gets a fresh one. The ID is echoed in the response,
and `add_request_id` copies it into every structlog event emitted while
the request is handled.
"""

from __future__ import annotations

import logging
import re
import uuid
from contextvars import ContextVar
from typing import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Client IDs end up in log lines; anything else is replaced
_ACCEPTED_ID = re.compile(r"[A-Za-z0-9._:-]{1,128}")

_current_request_id: ContextVar[str] = ContextVar("request_id", default="")


def current_request_id() -> str:
    """Return the ID of the request being handled, or "" outside one."""
    return _current_request_id.get()


def _request_id_from(request: Request) -> str:
    supplied = request.headers.get(REQUEST_ID_HEADER, "")
    if _ACCEPTED_ID.fullmatch(supplied):
        return supplied
    return str(uuid.uuid4())


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = _request_id_from(request)
        token = _current_request_id.set(request_id)
        try:
            response = await call_next(request)
            logger.debug(
                "%s %s -> %d", request.method, request.url.path, response.status_code,
            )
        finally:
            _current_request_id.reset(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def add_request_id(wrapped_logger: logging.Logger, method: str, event_dict: dict) -> dict:
    """Structlog processor: tag the event with the current request ID."""
    request_id = current_request_id()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict
