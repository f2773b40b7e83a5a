# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""FastAPI application factory for the sleep hub."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sleephub import __version__
from sleephub.api.routes import alarm, devices, dimmer, health, sleep, websocket
from sleephub.config import Settings, get_settings
from sleephub.hub.orchestrator import SessionOrchestrator

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    orchestrator: Optional[SessionOrchestrator] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Hub settings (uses global if not provided)
        orchestrator: Pre-built orchestrator, mainly for tests (created at
            startup if not provided)

    Returns:
        Configured FastAPI app
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler for startup/shutdown."""
        # Startup
        logger.info("Sleep hub starting...")
        app.state.orchestrator = orchestrator or SessionOrchestrator(settings)
        logger.info(
            f"Sleep hub ready on {settings.server.host}:{settings.server.port} "
            f"(cycle={settings.scheduler.cycle_minutes}min)"
        )

        yield

        # Shutdown
        logger.info("Sleep hub shutting down...")
        app.state.orchestrator.shutdown()
        logger.info("Sleep hub stopped")

    app = FastAPI(
        title="Sleep Hub",
        description=(
            "Coordinates bedside sleep sensors, smart-alarm scheduling "
            "and bulb dimming for connected dashboards. Wakes the sleeper "
            "at the end of a sleep cycle with a gradual light ramp."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    # Dashboards are served from other origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(health.router, tags=["Health"])
    app.include_router(devices.router, prefix="/api/devices", tags=["Devices"])
    app.include_router(sleep.router, prefix="/api/sleep", tags=["Sleep"])
    app.include_router(alarm.router, prefix="/api/alarm", tags=["Alarm"])
    app.include_router(dimmer.router, prefix="/api/dimmer", tags=["Dimmer"])
    app.include_router(websocket.router, tags=["WebSocket"])

    return app
