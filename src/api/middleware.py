"""
FastAPI middleware for request logging.

Tags each request with a short ID so the booking and resolver log lines it
produces can be correlated.
"""

import logging
import time
import uuid
from typing import Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


def get_request_id(request: Request) -> Optional[str]:
    """Get the ID the middleware gave this request, if it ran."""
    return getattr(request.state, "request_id", None)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs each request with its caller and timing.

    Features:
    - Short request ID, echoed in the X-Request-ID response header and
      in error bodies
    - Caller identity from X-User-ID / X-User-Role
    - Status code and elapsed time on completion
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        req_id = uuid.uuid4().hex[:8]
        request.state.request_id = req_id

        caller = request.headers.get("x-user-id") or "anonymous"
        role = request.headers.get("x-user-role") or "client"
        logger.info(
            f"[{req_id}] {request.method} {request.url.path} by {caller} ({role})",
            extra={
                "request_id": req_id,
                "method": request.method,
                "path": request.url.path,
                "query": str(request.query_params),
            },
        )

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            elapsed = time.perf_counter() - started
            logger.error(
                f"[{req_id}] Request failed after {elapsed:.3f}s: {e}",
                extra={"request_id": req_id, "elapsed_ms": elapsed * 1000},
                exc_info=True,
            )
            raise

        elapsed = time.perf_counter() - started
        logger.info(
            f"[{req_id}] {response.status_code} in {elapsed:.3f}s",
            extra={
                "request_id": req_id,
                "status_code": response.status_code,
                "elapsed_ms": elapsed * 1000,
            },
        )

        response.headers["X-Request-ID"] = req_id
        return response
