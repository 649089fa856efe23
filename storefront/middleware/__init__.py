"""Custom FastAPI middleware components."""

from .observability import ObservabilityMiddleware, client_ip

__all__ = [
    "ObservabilityMiddleware",
    "client_ip",
]
