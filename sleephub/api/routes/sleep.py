# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Sleep monitoring endpoints."""

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field, field_validator

from sleephub.api.deps import get_orchestrator
from sleephub.errors import HubError
from sleephub.hub.orchestrator import SessionOrchestrator

router = APIRouter()


class DeviceRequest(BaseModel):
    """Request body naming a device.

    Numeric device ids are accepted and stringified, as on the WebSocket.
    """

    model_config = ConfigDict(populate_by_name=True)

    device_id: Optional[str] = Field(default=None, alias="deviceId")

    @field_validator("device_id", mode="before")
    @classmethod
    def stringify_device_id(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


@router.get("/session/{device_id}")
async def get_session(
    device_id: str,
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),
):
    """Get the current sleep session of a device.

    Args:
        device_id: Device ID

    Returns:
        Session start time, samples, and the latest batch analysis
    """
    try:
        session = orchestrator.get_session(device_id)
    except HubError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return session.to_dict()


@router.post("/start")
async def start_monitoring(
    request: DeviceRequest,
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),
):
    """Ask a device to start sleep monitoring."""
    try:
        orchestrator.request_start_monitoring(request.device_id)
    except HubError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return {"success": True, "message": "Sleep monitoring started"}


@router.post("/stop")
async def stop_monitoring(
    request: DeviceRequest,
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),
):
    """Ask a device to stop sleep monitoring."""
    try:
        orchestrator.request_stop_monitoring(request.device_id)
    except HubError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return {"success": True, "message": "Sleep monitoring stopped"}
