# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Health check endpoint."""

from fastapi import APIRouter, Depends

from sleephub import __version__
from sleephub.api.deps import get_orchestrator
from sleephub.hub.orchestrator import SessionOrchestrator

router = APIRouter()


@router.get("/health")
async def health_check(orchestrator: SessionOrchestrator = Depends(get_orchestrator)):
    """Basic health check endpoint.

    Returns simple OK response plus live connection counts.
    """
    return {
        "status": "ok",
        "service": "sleephub",
        "version": __version__,
        "devices": len(orchestrator.registry.devices()),
        "connections": orchestrator.registry.transport_count,
    }
