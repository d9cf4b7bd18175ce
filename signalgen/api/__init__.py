"""HTTP API routers."""

from .signals import router as signals_router

__all__ = ["signals_router"]
