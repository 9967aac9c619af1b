"""Request context middleware: one id per request, on every log line.

Concurrent requests interleave their log lines on the same thread:

  INFO  Media access denied            (which learner's request?)
  INFO  Signing key loaded
  INFO  GET /v1/courses/c1/video-access -> 403

With a request id attached to every record, "show me everything that
happened for the 403" is one filter.

The id lives in a ContextVar, not a thread-local: async requests share a
thread, and each asyncio task gets its own copy of the context.  A client
may send X-Request-ID to correlate with its own logs; otherwise a UUID is
generated.  The id is echoed back in the response header.
"""

from __future__ import annotations

import logging
import time
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")

_MAX_REQUEST_ID_LEN = 128


class _RequestContextFilter(logging.Filter):
    """Attach the current request id to every LogRecord.

    A filter, not a formatter: formatters can only read fields already on
    the record.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get("-")  # type: ignore[attr-defined]
        return True


# Installed on the root handler chain once, even if the module is reloaded.
root_logger = logging.getLogger()
if not any(isinstance(f, _RequestContextFilter) for f in root_logger.filters):
    root_logger.addFilter(_RequestContextFilter())


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assign a request id, time the request, log one summary line."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        supplied = request.headers.get("x-request-id", "")
        req_id = supplied[:_MAX_REQUEST_ID_LEN] if supplied else str(uuid.uuid4())
        request_id_var.set(req_id)

        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000, 1)

        # Path only; the query string of a signed URL request is never logged.
        logger.info(
            "%s %s -> %d (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={
                "request_id": req_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )

        response.headers["X-Request-ID"] = req_id
        return response
