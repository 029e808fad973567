"""
Middleware modules for the rental contracts API.

Provides request processing middleware for:
- Correlation ID tracking for request tracing
"""

from .correlation import CorrelationIdMiddleware, correlation_id_ctx, request_id_ctx, get_request_id

__all__ = [
    "CorrelationIdMiddleware",
    "correlation_id_ctx",
    "request_id_ctx",
    "get_request_id",
]
