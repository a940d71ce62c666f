"""
Logging middleware for request/response logging.

Logs all HTTP requests with timing and records request metrics.
"""
import time
import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from playerauth.routes.metrics import track_request

logger = structlog.get_logger()


def route_template(request: Request) -> str:
    """
    Matched route path, e.g. ``/users/{email}``.

    Metric labels use the template so path parameters never become label values.
    """
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to log all HTTP requests with timing and context.

    Adds: route, method, client, duration_ms, status to every log.
    """

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        # Bind context to logger for this request
        request_logger = logger.bind(
            route=request.url.path,
            method=request.method,
            client=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.time() - start_time
            track_request(request.method, route_template(request), 500, duration)
            request_logger.error(
                "request_failed",
                status_code=500,
                duration_ms=round(duration * 1000, 2),
                error=str(e)
            )
            raise

        duration = time.time() - start_time
        track_request(request.method, route_template(request), response.status_code, duration)

        request_logger.info(
            "request_completed",
            status_code=response.status_code,
            duration_ms=round(duration * 1000, 2)
        )

        return response
