# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Data models for the sleep hub."""

from sleephub.models.device import (
    AlarmCalculation,
    AlarmSetting,
    AnalysisSnapshot,
    Device,
    DeviceState,
    SleepSample,
    SleepSession,
    SleepStage,
    TransportRole,
)

__all__ = [
    "AlarmCalculation",
    "AlarmSetting",
    "AnalysisSnapshot",
    "Device",
    "DeviceState",
    "SleepSample",
    "SleepSession",
    "SleepStage",
    "TransportRole",
]
