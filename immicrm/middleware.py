import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("immicrm.access")


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """Tag each request with ``X-Request-ID`` and log one access line per request."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        correlation_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        request.state.correlation_id = correlation_id
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            # The catch-all handler answers this one further out
            self._log(request, 500, started, correlation_id)
            raise
        response.headers["X-Request-ID"] = correlation_id
        self._log(request, response.status_code, started, correlation_id)
        return response

    @staticmethod
    def _log(request: Request, status_code: int, started: float, correlation_id: str) -> None:
        logger.info(
            "%s %s -> %d (%.1f ms) [%s]",
            request.method,
            request.url.path,
            status_code,
            (time.perf_counter() - started) * 1000,
            correlation_id,
        )
