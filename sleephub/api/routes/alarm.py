# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Wake-up alarm endpoints."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field

from sleephub.api.deps import get_orchestrator
from sleephub.api.routes.sleep import DeviceRequest
from sleephub.errors import HubError
from sleephub.hub.orchestrator import SessionOrchestrator

router = APIRouter()


class AlarmSetRequest(DeviceRequest):
    """Request body for setting an alarm.

    targetWakeTime is epoch milliseconds (number or numeric string) or an
    ISO-8601 string. Values are validated by the orchestrator so that a bad
    request gets a 400 with a readable message.
    """

    target_wake_time: Any = Field(default=None, alias="targetWakeTime")
    pattern: Any = None
    max_bright: Any = Field(default=None, alias="maxBright")
    interval_ms: Any = Field(default=None, alias="intervalMs")


@router.post("/set")
async def set_alarm(
    request: AlarmSetRequest,
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),
):
    """Set a wake-up alarm and start monitoring on the device.

    Returns:
        The stored alarm values
    """
    try:
        setting = orchestrator.set_alarm(
            request.device_id,
            request.target_wake_time,
            pattern=request.pattern,
            max_bright=request.max_bright,
            interval_ms=request.interval_ms,
        )
    except HubError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    return {
        "success": True,
        "message": "Alarm set",
        "alarm": {
            "targetWakeTime": setting.target_wake_time,
            "pattern": setting.pattern,
            "maxBright": setting.max_bright,
            "intervalMs": setting.interval_ms,
        },
    }


@router.post("/cancel")
async def cancel_alarm(
    request: DeviceRequest,
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),
):
    """Cancel the alarm of a device. Cancelling twice is not an error."""
    try:
        orchestrator.cancel_alarm(request.device_id)
    except HubError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return {"success": True, "message": "Alarm cancelled"}


@router.get("/{device_id}")
async def get_alarm(
    device_id: str,
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),
):
    """Get the alarm setting of a device, including computed wake times."""
    try:
        setting = orchestrator.get_alarm(device_id)
    except HubError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return setting.to_dict()
