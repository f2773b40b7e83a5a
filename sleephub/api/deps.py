# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""FastAPI dependencies."""

from fastapi import Request

from sleephub.hub.orchestrator import SessionOrchestrator


def get_orchestrator(request: Request) -> SessionOrchestrator:
    """The orchestrator created by the application lifespan."""
    return request.app.state.orchestrator
