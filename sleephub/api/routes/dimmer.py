# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Bulb dimmer control endpoints."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field

from sleephub.api.deps import get_orchestrator
from sleephub.api.routes.sleep import DeviceRequest
from sleephub.errors import HubError
from sleephub.hub.orchestrator import SessionOrchestrator

router = APIRouter()


class PowerRequest(DeviceRequest):
    """Request body for switching the bulb."""

    on: Any = None


class PatternRequest(DeviceRequest):
    """Request body for starting a dimming pattern."""

    pattern: Any = None
    max_bright: Any = Field(default=None, alias="maxBright")
    interval_ms: Any = Field(default=None, alias="intervalMs")


class BrightnessRequest(DeviceRequest):
    """Request body for a fixed brightness level (0-100)."""

    level: Any = None


@router.post("/power")
async def set_power(
    request: PowerRequest,
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),
):
    """Turn the bulb on or off."""
    try:
        on = orchestrator.dimmer_power(request.device_id, request.on)
    except HubError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return {"success": True, "on": on}


@router.post("/pattern")
async def set_pattern(
    request: PatternRequest,
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),
):
    """Start a dimming waveform."""
    try:
        command = orchestrator.dimmer_pattern(
            request.device_id,
            request.pattern,
            max_bright=request.max_bright,
            interval_ms=request.interval_ms,
        )
    except HubError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return {
        "success": True,
        "pattern": command["pattern"],
        "maxBright": command["maxBright"],
        "intervalMs": command.get("interval_ms"),
    }


@router.post("/brightness")
async def set_brightness(
    request: BrightnessRequest,
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),
):
    """Hold the bulb at a fixed brightness. Out-of-range levels are clamped."""
    try:
        level = orchestrator.dimmer_brightness(request.device_id, request.level)
    except HubError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return {"success": True, "level": level}
