"""FastAPI backend for the AI trading-signal generator."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import signals_router
from .config import configure_logging, get_cors_origins
from .services import SignalService, build_signal_service

logger = logging.getLogger(__name__)


def create_app(service: SignalService | None = None) -> FastAPI:
    """
    Build the application.

    Args:
        service: Pre-built SignalService (tests); built from configuration otherwise
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.signal_service = service or build_signal_service()
        logger.info("Signal service ready")
        yield
        await app.state.signal_service.close()
        logger.info("Pending notifications drained")

    app = FastAPI(title="Signal Generator API", lifespan=lifespan)

    # Enable CORS for the local frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(signals_router)

    @app.get("/api/health")
    async def health():
        return {"status": "ok"}

    return app


configure_logging()
app = create_app()
