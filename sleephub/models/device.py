# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Data models for devices, sleep sessions, and alarms.

All instants are epoch milliseconds. ``to_dict`` produces the camelCase
shape the dashboard and the REST surface expect.
"""

import math
from collections import deque
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Deque, Dict, Iterable, Mapping, Optional

from sleephub.timeutil import is_number


def _finite(value: Any) -> bool:
    return is_number(value) and math.isfinite(value)


class SleepStage(IntEnum):
    """Sleep stage reported by a device."""

    AWAKE = 0
    LIGHT = 1
    DEEP = 2

    @classmethod
    def coerce(cls, value: Any) -> "SleepStage":
        """Map a raw wire value to a stage. Anything unknown is AWAKE."""
        if not is_number(value):
            return cls.AWAKE
        try:
            return cls(int(value))
        except ValueError:
            return cls.AWAKE


class TransportRole(Enum):
    """What a live transport is used for."""

    DEVICE = "device"
    OBSERVER = "observer"


class DeviceState(Enum):
    """Per-device session state machine states."""

    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    MONITORING = "monitoring"
    SLEEP_DETECTED = "sleep_detected"
    ALARM_SCHEDULED = "alarm_scheduled"
    ALARM_TRIGGERED = "alarm_triggered"  # Momentary, dimming is issued


@dataclass(frozen=True)
class SleepSample:
    """One movement/stage reading from a device."""

    stage: SleepStage = SleepStage.AWAKE
    movement_score: float = 0.0
    timestamp: Optional[float] = None  # Device clock, not comparable across devices

    @classmethod
    def from_dict(cls, data: Any) -> "SleepSample":
        """Create from a wire sample, defaulting malformed fields."""
        if not isinstance(data, Mapping):
            return cls()
        movement = data.get("movement_score")
        timestamp = data.get("timestamp")
        return cls(
            stage=SleepStage.coerce(data.get("sleep_stage")),
            movement_score=float(movement) if _finite(movement) else 0.0,
            timestamp=timestamp if _finite(timestamp) else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the wire shape."""
        return {
            "sleep_stage": int(self.stage),
            "movement_score": self.movement_score,
            "timestamp": self.timestamp,
        }


@dataclass
class AnalysisSnapshot:
    """Summary of one batch of samples."""

    stage: SleepStage = SleepStage.AWAKE
    movement_level: float = 0.0
    cycle_position: float = 0.0
    awake_count: int = 0
    light_count: int = 0
    deep_count: int = 0
    avg_movement: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "sleepStage": int(self.stage),
            "movementLevel": self.movement_level,
            "cyclePosition": self.cycle_position,
            "stageCounts": {
                "awake": self.awake_count,
                "light": self.light_count,
                "deep": self.deep_count,
            },
            "avgMovement": self.avg_movement,
        }


@dataclass
class SleepSession:
    """Samples collected since monitoring (re)started on a device."""

    device_id: str
    start_time: int
    max_samples: Optional[int] = None
    samples: Deque[SleepSample] = field(default_factory=deque)
    last_analysis: Optional[AnalysisSnapshot] = None

    def __post_init__(self):
        """Bound the sample buffer."""
        self.samples = deque(self.samples, maxlen=self.max_samples)

    def extend(self, samples: Iterable[SleepSample]) -> None:
        """Append in arrival order, dropping the oldest past the bound."""
        self.samples.extend(samples)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "deviceId": self.device_id,
            "startTime": self.start_time,
            "data": [sample.to_dict() for sample in self.samples],
            "lastAnalysis": self.last_analysis.to_dict() if self.last_analysis else None,
        }


@dataclass
class Device:
    """A connected sensor/actuator unit and its runtime state."""

    device_id: str
    transport: Any
    connected_at: int
    is_monitoring: bool = False
    alarm_active: bool = False

    # State machine
    state: DeviceState = DeviceState.CONNECTED
    state_changed_at: Optional[int] = None

    def transition_to(self, new_state: DeviceState, now: int) -> bool:
        """Transition to a new state, updating the timestamp.

        Returns:
            True if the state changed
        """
        if new_state == self.state:
            return False
        self.state = new_state
        self.state_changed_at = now
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the device-status entry observers receive."""
        return {
            "deviceId": self.device_id,
            "isMonitoring": self.is_monitoring,
            "alarmActive": self.alarm_active,
            "connectedAt": self.connected_at,
            "state": self.state.value,
        }


@dataclass(frozen=True)
class AlarmCalculation:
    """Result of aligning a wake time to sleep cycle boundaries."""

    optimal_wake_time: int
    cycles_to_target: int
    recommended_time: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "optimalWakeTime": self.optimal_wake_time,
            "cyclesToTarget": self.cycles_to_target,
            "recommendedTime": self.recommended_time,
        }


@dataclass
class AlarmSetting:
    """A requested wake-up alarm and what was computed for it."""

    target_wake_time: int
    pattern: int
    max_bright: int
    interval_ms: int
    set_at: int

    # Filled in when sleep is detected
    sleep_detected: bool = False
    sleep_start_time: Optional[int] = None
    optimal_wake_time: Optional[int] = None
    recommended_time: Optional[int] = None
    cycles_to_target: Optional[int] = None
    sleep_detected_at: Optional[int] = None

    # Filled in when the device reports the alarm fired
    triggered_at: Optional[int] = None

    def apply_detection(self, sleep_start: int, calc: AlarmCalculation) -> None:
        """Record the result of a sleep detection."""
        self.sleep_detected = True
        self.sleep_start_time = sleep_start
        self.optimal_wake_time = calc.optimal_wake_time
        self.recommended_time = calc.recommended_time
        self.cycles_to_target = calc.cycles_to_target
        self.sleep_detected_at = sleep_start

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "targetWakeTime": self.target_wake_time,
            "pattern": self.pattern,
            "maxBright": self.max_bright,
            "intervalMs": self.interval_ms,
            "setAt": self.set_at,
            "sleepDetected": self.sleep_detected,
            "sleepStartTime": self.sleep_start_time,
            "optimalWakeTime": self.optimal_wake_time,
            "recommendedTime": self.recommended_time,
            "cyclesToTarget": self.cycles_to_target,
            "sleepDetectedAt": self.sleep_detected_at,
            "triggeredAt": self.triggered_at,
        }
