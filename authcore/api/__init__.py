"""API package exports."""

from authcore.api.auth import router
from authcore.api.middleware import CorrelationIdMiddleware
from authcore.api.routes import router as health_router

__all__ = ["router", "health_router", "CorrelationIdMiddleware"]
