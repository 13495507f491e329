"""
Request Tracing Middleware

Per-request correlation ID:
- Re-uses the caller-supplied ``X-Request-ID`` header, or generates a UUID4.
- Binds it to structlog's contextvars as ``request_id`` so every log record
  emitted while serving the request carries it.
- Echoes it in the ``X-Request-ID`` response header.
- Stores it on ``request.state.request_id``.
"""

import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"


class TracingMiddleware(BaseHTTPMiddleware):
    """Inject a request-scoped ID into every log record and response.

    Register it last (outermost) so that the ID is bound before any other
    middleware or exception handler logs.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id: str = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        response: Response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
