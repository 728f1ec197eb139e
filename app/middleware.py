import time
import logging
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

log = logging.getLogger("photo-gallery.access")

class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, client, status and duration of every request."""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start

        client = request.client.host if request.client else "-"
        log.info(
            "%s %s %s %d %.3fs",
            request.method,
            request.url.path,
            client,
            response.status_code,
            elapsed,
        )
        return response
