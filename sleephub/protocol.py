# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""JSON wire protocol between the hub, devices, and observers.

Inbound device envelope:
    {device_id, data_type: "sleep_data" | "device_status",
     status?: "connected" | "monitoring_started" | "monitoring_stopped"
              | "sleep_detected" | "alarm_triggered",
     data?: [...], monitoring?: bool, alarm_active?: bool}

A single envelope may carry a sample batch and a status change at once, so
parsing yields a list of events (data first, then status).
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from sleephub.errors import ProtocolParseError
from sleephub.models.device import AnalysisSnapshot, SleepSample

logger = logging.getLogger(__name__)


class InboundKind(Enum):
    """Every event a device can report."""

    SLEEP_DATA = "sleep_data"
    CONNECTED = "connected"
    MONITORING_STARTED = "monitoring_started"
    MONITORING_STOPPED = "monitoring_stopped"
    SLEEP_DETECTED = "sleep_detected"
    ALARM_TRIGGERED = "alarm_triggered"
    STATUS_REPORT = "status_report"  # device_status without a status change


STATUS_KINDS = {
    "connected": InboundKind.CONNECTED,
    "monitoring_started": InboundKind.MONITORING_STARTED,
    "monitoring_stopped": InboundKind.MONITORING_STOPPED,
    "sleep_detected": InboundKind.SLEEP_DETECTED,
    "alarm_triggered": InboundKind.ALARM_TRIGGERED,
}


@dataclass
class InboundEvent:
    """One decoded device event."""

    kind: InboundKind
    device_id: str
    samples: List[SleepSample] = field(default_factory=list)
    monitoring: Optional[bool] = None
    alarm_active: Optional[bool] = None


def _optional_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    return None


def parse_device_message(raw: Union[str, bytes, Dict[str, Any]]) -> List[InboundEvent]:
    """Decode one inbound message.

    Args:
        raw: JSON text/bytes, or an already decoded dict

    Returns:
        Events in the order they should be applied

    Raises:
        ProtocolParseError: If the message is not valid JSON, has no
            device_id, or carries nothing the hub understands
    """
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            message = json.loads(raw)
        except (ValueError, UnicodeDecodeError) as e:
            raise ProtocolParseError(f"Invalid JSON: {e}") from e
    else:
        message = raw

    if not isinstance(message, dict):
        raise ProtocolParseError("Message must be a JSON object")

    device_id = message.get("device_id")
    if isinstance(device_id, (int, float)) and not isinstance(device_id, bool):
        device_id = str(device_id)
    if not isinstance(device_id, str) or not device_id:
        raise ProtocolParseError("Missing device_id")

    data_type = message.get("data_type")
    status = message.get("status")
    monitoring = _optional_bool(message.get("monitoring"))
    alarm_active = _optional_bool(message.get("alarm_active"))

    events: List[InboundEvent] = []

    if data_type == "sleep_data":
        data = message.get("data")
        if not isinstance(data, list):
            raise ProtocolParseError(f"sleep_data from {device_id} has no data list")
        events.append(InboundEvent(
            kind=InboundKind.SLEEP_DATA,
            device_id=device_id,
            samples=[SleepSample.from_dict(item) for item in data],
        ))
    elif data_type not in (None, "device_status"):
        logger.debug(f"Unknown data_type from {device_id}: {data_type!r}")

    if status:
        kind = STATUS_KINDS.get(status) if isinstance(status, str) else None
        if kind is None:
            logger.warning(f"Ignoring unknown status from {device_id}: {status!r}")
        else:
            events.append(InboundEvent(
                kind=kind,
                device_id=device_id,
                monitoring=monitoring,
                alarm_active=alarm_active,
            ))
    elif data_type == "device_status":
        events.append(InboundEvent(
            kind=InboundKind.STATUS_REPORT,
            device_id=device_id,
            monitoring=monitoring,
            alarm_active=alarm_active,
        ))

    if not events:
        raise ProtocolParseError(
            f"Nothing to handle in message from {device_id} (data_type={data_type!r})"
        )
    return events


# ==================== Device Commands ====================

def start_monitoring_command(now: int) -> Dict[str, Any]:
    return {"command": "start_monitoring", "timestamp": now}


def stop_monitoring_command(now: int) -> Dict[str, Any]:
    return {"command": "stop_monitoring", "timestamp": now}


def set_alarm_command(delay_ms: int) -> Dict[str, Any]:
    return {"command": "set_alarm", "delay_ms": delay_ms}


def cancel_alarm_command(now: int) -> Dict[str, Any]:
    return {"command": "cancel_alarm", "timestamp": now}


def bulb_dimming_command(
    pattern: int,
    max_bright: int,
    interval_ms: Optional[int] = None,
) -> Dict[str, Any]:
    """Dimming waveform command. interval_ms is omitted when not given."""
    command: Dict[str, Any] = {
        "command": "bulb_dimming",
        "pattern": pattern,
        "maxBright": max_bright,
    }
    if interval_ms is not None:
        command["interval_ms"] = interval_ms
    return command


def bulb_power_command(on: bool) -> Dict[str, Any]:
    return {"command": "bulb_power", "on": on}


def set_power_clamped_command(level: int) -> Dict[str, Any]:
    return {"command": "set_power_clamped", "level": level}


# ==================== Observer Events ====================

def device_status_event(devices: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {"type": "device_status", "devices": devices}


def sleep_data_event(device_id: str, analysis: AnalysisSnapshot, now: int) -> Dict[str, Any]:
    return {
        "type": "sleep_data",
        "deviceId": device_id,
        "analysis": analysis.to_dict(),
        "timestamp": now,
    }


def sleep_detected_event(
    device_id: str,
    sleep_start_time: int,
    recommended_time: int,
    cycles_to_target: int,
    now: int,
) -> Dict[str, Any]:
    return {
        "type": "sleep_detected",
        "deviceId": device_id,
        "sleepInfo": {
            "sleepStartTime": sleep_start_time,
            "recommendedAlarmTime": recommended_time,
            "cyclesToTarget": cycles_to_target,
        },
        "timestamp": now,
    }


def alarm_triggered_event(device_id: str, now: int) -> Dict[str, Any]:
    return {"type": "alarm_triggered", "deviceId": device_id, "timestamp": now}
