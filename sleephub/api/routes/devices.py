# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Device listing endpoint."""

from fastapi import APIRouter, Depends

from sleephub.api.deps import get_orchestrator
from sleephub.hub.orchestrator import SessionOrchestrator

router = APIRouter()


@router.get("")
async def list_devices(orchestrator: SessionOrchestrator = Depends(get_orchestrator)):
    """List registered devices.

    Returns:
        Device-status entries, one per connected device
    """
    devices = orchestrator.list_devices()
    return {"success": True, "devices": devices, "count": len(devices)}
