import time
import logging
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("access")


class LoggingMiddleware(BaseHTTPMiddleware):
    """One access line per request: caller, route, status and latency"""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started

        # Set by get_current_staff once the bearer token has been resolved
        staff = getattr(request.state, "current_staff", None)
        caller = staff.staff_id if staff is not None else "anonymous"
        client = request.client.host if request.client else "-"

        level = logging.WARNING if response.status_code >= 400 else logging.INFO
        logger.log(
            level,
            f"{client} {caller} {request.method} {request.url.path} "
            f"{response.status_code} {elapsed * 1000:.1f}ms",
        )

        response.headers["X-Process-Time"] = f"{elapsed:.4f}"
        return response
