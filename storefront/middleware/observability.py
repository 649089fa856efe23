from __future__ import annotations

import time
import uuid
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from storefront.core.logging import get_logger
from storefront.core.metrics import normalize_path, record_request_metrics

REQUEST_ID_HEADER = "X-Request-ID"


def client_ip(request: Request | None) -> str | None:
    """First hop of X-Forwarded-For, else the socket peer."""
    if request is None:
        return None
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    client = request.client
    return client.host if client else None


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """Request metrics, a request id on every response and structured logs for 4xx/5xx."""

    def __init__(self, app, *, log_4xx: bool = True, log_5xx: bool = True) -> None:
        super().__init__(app)
        self.logger = get_logger("storefront.requests")
        self.log_4xx = log_4xx
        self.log_5xx = log_5xx

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            elapsed = time.perf_counter() - started
            record_request_metrics(request, 500, elapsed)
            self.logger.error("Unhandled server error", extra=self._context(request, 500, elapsed))
            raise

        elapsed = time.perf_counter() - started
        record_request_metrics(request, response.status_code, elapsed)
        response.headers[REQUEST_ID_HEADER] = request_id

        if response.status_code >= 500:
            if self.log_5xx:
                self.logger.error("Server error response", extra=self._context(request, response.status_code, elapsed))
        elif response.status_code >= 400 and self.log_4xx:
            self.logger.warning("Client error response", extra=self._context(request, response.status_code, elapsed))

        return response

    @staticmethod
    def _context(request: Request, status_code: int, elapsed: float) -> dict[str, Any]:
        return {
            "method": request.method,
            "path": normalize_path(request),
            "status_code": status_code,
            "duration_ms": round(elapsed * 1000, 3),
            "client_ip": client_ip(request),
            "user_agent": request.headers.get("user-agent"),
            "request_id": getattr(request.state, "request_id", None),
        }
