"""Access logging middleware using structlog."""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class AccessLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware that logs one structured ``http_request`` event per request.

    A request id (taken from ``X-Request-ID`` when the client sends one) is
    bound into structlog contextvars for the duration of the request, so that
    service events such as ``section_created`` carry it too, and is echoed
    back in the response header.

    Log fields:
        - request_id: Correlation id
        - method: HTTP method
        - path: Request path
        - status_code: Response status code
        - duration_ms: Request duration in milliseconds
        - client_ip: Client IP address
        - forwarded_for: First hop of X-Forwarded-For, when present
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Process request and log access information."""
        start_time = time.perf_counter()
        request_id = request.headers.get(REQUEST_ID_HEADER.lower()) or uuid.uuid4().hex
        client_ip = request.client.host if request.client else "unknown"

        forwarded_for = None
        if xff_header := request.headers.get("x-forwarded-for"):
            forwarded_for = xff_header.split(",")[0].strip()

        with structlog.contextvars.bound_contextvars(request_id=request_id):
            response = await call_next(request)

            duration_ms = (time.perf_counter() - start_time) * 1000
            log_kwargs = {
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            }
            if forwarded_for:
                log_kwargs["forwarded_for"] = forwarded_for
            logger.info("http_request", **log_kwargs)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
