"""Request logging middleware emitting Cloud Logging request metadata.

Each request produces one log record whose ``extra`` fields use the keys
the formatter recognises: ``httpRequest``, the trace and span ids parsed
from the ``X-Cloud-Trace-Context`` header propagated by Cloud Run, and the
request id taken from ``X-Request-Id``.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from cloudlog.config import settings
from cloudlog.services.formatter import DEFAULT_OPERATION_ID_KEY, SPAN_ID_KEY, TRACE_ID_KEY

logger = logging.getLogger(__name__)


def parse_trace_context(header: str, project_id: str = "") -> tuple[str, str]:
    """Split ``TRACE_ID/SPAN_ID;o=OPTIONS`` into a (trace, span) pair.

    The trace is qualified as ``projects/<id>/traces/<trace>`` when a
    project id is given, which is the form Cloud Logging correlates on.
    """
    if not header:
        return "", ""
    trace_id, _, rest = header.partition("/")
    span_id = rest.split(";", 1)[0]
    if trace_id and project_id:
        trace_id = f"projects/{project_id}/traces/{trace_id}"
    return trace_id, span_id


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, URL, status, and latency of every request."""

    def __init__(self, app, project_id: str | None = None, operation_id_key: str = "") -> None:
        super().__init__(app)
        self.project_id = settings.gcp_project_id if project_id is None else project_id
        self.operation_id_key = operation_id_key or settings.operation_id_key or DEFAULT_OPERATION_ID_KEY

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.monotonic()
        response = await call_next(request)
        latency = time.monotonic() - start

        fields = {
            "httpRequest": {
                "requestMethod": request.method,
                "requestUrl": str(request.url),
                "status": response.status_code,
                "latency": f"{latency:.6f}s",
                "userAgent": request.headers.get("user-agent", ""),
                "remoteIp": request.client.host if request.client else "",
            },
        }
        trace_id, span_id = parse_trace_context(
            request.headers.get("x-cloud-trace-context", ""), self.project_id
        )
        if trace_id:
            fields[TRACE_ID_KEY] = trace_id
        if span_id:
            fields[SPAN_ID_KEY] = span_id
        request_id = request.headers.get("x-request-id", "")
        if request_id:
            fields[self.operation_id_key] = request_id

        if response.status_code >= 500:
            level = logging.ERROR
        elif response.status_code >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO
        logger.log(
            level,
            "%s %s -> %d (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            latency * 1000,
            extra=fields,
        )
        return response
