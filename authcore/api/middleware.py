"""Request correlation for log lines and error bodies."""

from uuid import uuid4

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

CORRELATION_HEADER = "X-Correlation-Id"
MAX_CORRELATION_ID_LENGTH = 128


def _incoming_correlation_id(request: Request) -> str | None:
    value = request.headers.get(CORRELATION_HEADER, "").strip()
    if not value or len(value) > MAX_CORRELATION_ID_LENGTH or not value.isprintable():
        return None
    return value


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Tag every request with a correlation id.

    A well-formed incoming X-Correlation-Id is reused; otherwise a UUID4 is
    minted. The id is stored on request.state for the error handlers, bound
    into structlog contextvars along with the method and path, and echoed on
    the response.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        correlation_id = _incoming_correlation_id(request) or str(uuid4())
        request.state.correlation_id = correlation_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            correlation_id=correlation_id,
            method=request.method,
            path=request.url.path,
        )

        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response
