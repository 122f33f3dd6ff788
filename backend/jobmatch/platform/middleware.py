import time
import uuid
import logging
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from .request_context import reset_request_id, set_request_id

logger = logging.getLogger("jobmatch.middleware")

_MAX_REQUEST_ID_CHARS = 128


def _incoming_request_id(request: Request) -> str:
    supplied = (request.headers.get("X-Request-ID") or "").strip()
    if supplied and len(supplied) <= _MAX_REQUEST_ID_CHARS:
        return supplied
    return uuid.uuid4().hex


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id for log correlation and report its duration.

    The id is bound to the request context only while the request is being
    served, so match analysis logs emitted inside the handler carry it and
    nothing leaks into later work on the same worker.
    """

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        request_id = _incoming_request_id(request)
        request.state.request_id = request_id
        token = set_request_id(request_id)
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "method=%s path=%s unhandled error after %.1fms",
                request.method,
                request.url.path,
                (time.perf_counter() - started) * 1000,
            )
            raise
        finally:
            reset_request_id(token)

        duration_ms = (time.perf_counter() - started) * 1000
        if request.url.path != "/health":
            logger.info(
                "method=%s path=%s status=%d duration=%.1fms",
                request.method,
                request.url.path,
                response.status_code,
                duration_ms,
                extra={"request_id": request_id},
            )

        response.headers["X-Process-Time-Ms"] = f"{duration_ms:.1f}"
        response.headers["X-Request-ID"] = request_id
        return response
