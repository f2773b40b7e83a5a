# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Session orchestrator: the per-device state machine of the hub.

Owns the connection registry, the sample store and the alarm settings, and
is the only component that mutates them. Handlers are synchronous and run
to completion on the event loop.

State Machine (per device):
    DISCONNECTED    - No transport carries the device
    CONNECTED       - Device reported "connected"
    MONITORING      - Device is streaming sleep samples
    SLEEP_DETECTED  - Device reported no movement past its threshold
    ALARM_SCHEDULED - set_alarm{delay_ms} was sent to the device
    ALARM_TRIGGERED - Device reported the alarm fired (momentary)

Transitions:
    DISCONNECTED → CONNECTED: "connected" status
    CONNECTED → MONITORING: "monitoring_started"
    MONITORING → SLEEP_DETECTED → ALARM_SCHEDULED: "sleep_detected" with an alarm set
    ALARM_SCHEDULED → CONNECTED: "monitoring_stopped" or alarm cancelled
    * → ALARM_TRIGGERED → CONNECTED: "alarm_triggered" (dimming issued)
    * → DISCONNECTED: transport closed

Setting an alarm also asks the device to start monitoring.

The countdown itself runs on the device: the hub sends a delay and keeps
no timers.
"""

import json
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from sleephub.analysis.analyzer import analyze
from sleephub.analysis.scheduler import alarm_delay_ms, compute_alarm
from sleephub.config import Settings, get_settings
from sleephub.errors import (
    DeviceUnavailableError,
    NotFoundError,
    ProtocolParseError,
    ValidationError,
)
from sleephub.hub.broadcast import BroadcastDispatcher
from sleephub.hub.registry import ConnectionRegistry
from sleephub.hub.store import SleepSampleStore
from sleephub.hub.transport import Transport
from sleephub.models.device import (
    AlarmCalculation,
    AlarmSetting,
    AnalysisSnapshot,
    Device,
    DeviceState,
    SleepSample,
    SleepSession,
)
from sleephub.protocol import (
    InboundEvent,
    InboundKind,
    alarm_triggered_event,
    bulb_dimming_command,
    bulb_power_command,
    cancel_alarm_command,
    device_status_event,
    parse_device_message,
    set_alarm_command,
    set_power_clamped_command,
    sleep_data_event,
    sleep_detected_event,
    start_monitoring_command,
    stop_monitoring_command,
)
from sleephub.timeutil import format_ms, is_number, now_ms, parse_instant_ms, parse_int

logger = logging.getLogger(__name__)


class SessionOrchestrator:
    """Coordinates devices, sessions, alarms, and observers.

    Attributes:
        registry: Live transports and registered devices
        store: Per-device sleep sessions
        dispatcher: Observer fan-out
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        """Initialize orchestrator.

        Args:
            settings: Hub settings (uses global if not provided)
            clock: Returns the current time in epoch ms (wall clock if not provided)
        """
        self.settings = settings or get_settings()
        self._clock = clock or now_ms

        self.registry = ConnectionRegistry()
        self.store = SleepSampleStore(max_samples=self.settings.session.max_samples)
        self.dispatcher = BroadcastDispatcher(self.registry)
        self._alarms: Dict[str, AlarmSetting] = {}

        self._handlers: Dict[InboundKind, Callable[[Transport, InboundEvent], None]] = {
            InboundKind.SLEEP_DATA: self._on_sleep_data,
            InboundKind.CONNECTED: self._on_connected,
            InboundKind.MONITORING_STARTED: self._on_monitoring_started,
            InboundKind.MONITORING_STOPPED: self._on_monitoring_stopped,
            InboundKind.SLEEP_DETECTED: self._on_sleep_detected,
            InboundKind.ALARM_TRIGGERED: self._on_alarm_triggered,
            InboundKind.STATUS_REPORT: self._on_status_report,
        }
        missing = set(InboundKind) - set(self._handlers)
        if missing:
            raise RuntimeError(f"No handler for inbound kinds: {sorted(k.value for k in missing)}")

        logger.info("SessionOrchestrator initialized")

    def now(self) -> int:
        return self._clock()

    # ==================== Transport Lifecycle ====================

    def attach_transport(self, transport: Transport) -> None:
        """A new connection opened. It is an observer until it says otherwise."""
        self.registry.attach(transport)
        logger.debug(f"Transport attached ({self.registry.transport_count} live)")

    def detach_transport(self, transport: Transport) -> None:
        """A connection closed. Drops the device it carried, if any."""
        device = self.registry.detach(transport)
        if device is not None:
            logger.info(f"Device {device.device_id} disconnected")
            self.broadcast_device_status()

    def handle_message(self, transport: Transport, raw: Any) -> None:
        """Decode and apply one inbound message.

        Malformed messages are logged and dropped; the connection stays open.
        """
        try:
            events = parse_device_message(raw)
        except ProtocolParseError as e:
            logger.warning(f"Dropping inbound message: {e.message}")
            return

        for event in events:
            self._handlers[event.kind](transport, event)

    # ==================== Inbound Event Handlers ====================

    def _on_connected(self, transport: Transport, event: InboundEvent) -> None:
        self.connect(
            transport,
            event.device_id,
            is_monitoring=bool(event.monitoring),
            alarm_active=bool(event.alarm_active),
        )

    def _on_sleep_data(self, transport: Transport, event: InboundEvent) -> None:
        self.ingest_sleep_data(event.device_id, event.samples)

    def _on_monitoring_started(self, transport: Transport, event: InboundEvent) -> None:
        self.start_monitoring(event.device_id)

    def _on_monitoring_stopped(self, transport: Transport, event: InboundEvent) -> None:
        self.stop_monitoring(event.device_id)

    def _on_sleep_detected(self, transport: Transport, event: InboundEvent) -> None:
        self.sleep_detected(event.device_id)

    def _on_alarm_triggered(self, transport: Transport, event: InboundEvent) -> None:
        self.alarm_triggered(event.device_id)

    def _on_status_report(self, transport: Transport, event: InboundEvent) -> None:
        self.status_report(event.device_id, event.monitoring, event.alarm_active)

    # ==================== Device Transitions ====================

    def connect(
        self,
        transport: Transport,
        device_id: str,
        is_monitoring: bool = False,
        alarm_active: bool = False,
    ) -> Device:
        """Register the device carried by a transport (last write wins)."""
        now = self.now()
        device = self.registry.register_device(
            transport,
            device_id,
            connected_at=now,
            is_monitoring=is_monitoring,
            alarm_active=alarm_active,
        )
        if is_monitoring:
            device.transition_to(DeviceState.MONITORING, now)

        logger.info(f"Device {device_id} connected (monitoring={is_monitoring})")
        self.broadcast_device_status()
        return device

    def start_monitoring(self, device_id: str) -> SleepSession:
        """Device began monitoring: start a fresh session."""
        now = self.now()
        device = self.registry.lookup(device_id)
        if device is not None:
            device.is_monitoring = True
            device.transition_to(DeviceState.MONITORING, now)

        session = self.store.start_session(device_id, now)
        logger.info(f"Device {device_id} monitoring started")
        self.broadcast_device_status()
        return session

    def stop_monitoring(self, device_id: str) -> None:
        """Device stopped monitoring. The session is kept for inspection."""
        device = self.registry.lookup(device_id)
        if device is not None:
            device.is_monitoring = False
            device.transition_to(DeviceState.CONNECTED, self.now())

        logger.info(f"Device {device_id} monitoring stopped")
        self.broadcast_device_status()

    def ingest_sleep_data(self, device_id: str, samples: Iterable[SleepSample]) -> AnalysisSnapshot:
        """Store a sample batch, analyze it, and push the result to observers."""
        batch = list(samples)
        now = self.now()

        session = self.store.append_samples(device_id, batch, now)
        analysis = analyze(batch, cycle_ms=self.settings.scheduler.cycle_ms)
        session.last_analysis = analysis

        logger.debug(
            f"Device {device_id}: {len(batch)} sample(s), stage={analysis.stage.name}, "
            f"movement={analysis.movement_level:.2f}"
        )
        self.dispatcher.broadcast(sleep_data_event(device_id, analysis, now))
        return analysis

    def sleep_detected(self, device_id: str) -> Optional[AlarmCalculation]:
        """Device saw no movement long enough: schedule the wake-up.

        Sleep onset is taken as the server's receive time; device clocks
        are not trusted.

        Returns:
            The alarm calculation, or None if nothing was scheduled
        """
        device = self.registry.lookup(device_id)
        if device is None:
            logger.info(f"Sleep detected for unregistered device {device_id}, ignoring")
            return None

        setting = self._alarms.get(device_id)
        if setting is None:
            logger.info(f"Sleep detected on {device_id} but no alarm is set")
            return None

        if setting.triggered_at is not None:
            logger.info(f"Sleep detected on {device_id} after its alarm fired, ignoring")
            return None

        if setting.sleep_detected and not self.settings.scheduler.rearm_on_redetect:
            logger.info(f"Sleep re-detected on {device_id}, keeping the existing alarm")
            return None

        sleep_start = self.now()
        device.transition_to(DeviceState.SLEEP_DETECTED, sleep_start)

        calc = compute_alarm(
            setting.target_wake_time,
            sleep_start,
            cycle_ms=self.settings.scheduler.cycle_ms,
        )
        delay_ms = alarm_delay_ms(
            calc.recommended_time,
            sleep_start,
            min_delay_ms=self.settings.scheduler.min_alarm_delay_ms,
        )

        logger.info(
            f"Sleep detected on {device_id}: start={format_ms(sleep_start)} "
            f"target={format_ms(setting.target_wake_time)} "
            f"recommended={format_ms(calc.recommended_time)} "
            f"cycles={calc.cycles_to_target} delay_ms={delay_ms}"
        )

        if self._try_send(device, set_alarm_command(delay_ms)):
            device.alarm_active = True
            device.transition_to(DeviceState.ALARM_SCHEDULED, sleep_start)

        setting.apply_detection(sleep_start, calc)

        self.dispatcher.broadcast(sleep_detected_event(
            device_id,
            sleep_start_time=sleep_start,
            recommended_time=calc.recommended_time,
            cycles_to_target=calc.cycles_to_target,
            now=self.now(),
        ))
        return calc

    def alarm_triggered(self, device_id: str) -> bool:
        """Device reports its alarm fired: start the wake-up dimming.

        Observers are told whether or not an alarm setting existed.

        Returns:
            True if a dimming command was sent
        """
        now = self.now()
        logger.info(f"Alarm triggered on {device_id}")

        device = self.registry.lookup(device_id)
        setting = self._alarms.get(device_id)
        dimming_sent = False

        if device is not None:
            device.transition_to(DeviceState.ALARM_TRIGGERED, now)

            if setting is not None:
                command = bulb_dimming_command(
                    pattern=self._stored_or_default(setting.pattern, self.settings.alarm.default_pattern),
                    max_bright=self._stored_or_default(setting.max_bright, self.settings.alarm.default_max_bright),
                    interval_ms=self._stored_or_default(setting.interval_ms, self.settings.alarm.default_interval_ms),
                )
                dimming_sent = self._try_send(device, command)
                if dimming_sent:
                    logger.info(
                        f"Wake-up dimming started on {device_id}: "
                        f"pattern={command['pattern']} maxBright={command['maxBright']}"
                    )

            device.alarm_active = False
            device.transition_to(DeviceState.CONNECTED, now)

        if setting is not None:
            setting.triggered_at = now

        self.dispatcher.broadcast(alarm_triggered_event(device_id, now))
        return dimming_sent

    def status_report(
        self,
        device_id: str,
        monitoring: Optional[bool] = None,
        alarm_active: Optional[bool] = None,
    ) -> None:
        """Device sent a plain status report: refresh its flags."""
        device = self.registry.lookup(device_id)
        if device is None:
            logger.debug(f"Status report from unregistered device {device_id}, ignoring")
            return

        if monitoring is not None:
            device.is_monitoring = monitoring
        if alarm_active is not None:
            device.alarm_active = alarm_active
        self.broadcast_device_status()

    # ==================== Observer Requests ====================

    def set_alarm(
        self,
        device_id: Any,
        target_wake_time: Any,
        pattern: Any = None,
        max_bright: Any = None,
        interval_ms: Any = None,
    ) -> AlarmSetting:
        """Store a wake-up alarm and start monitoring on the device.

        The device does not have to be connected yet; the alarm is kept
        and applied when sleep is detected.

        Raises:
            ValidationError: Missing device id, missing or unparseable wake time
        """
        if not device_id or target_wake_time is None or target_wake_time == "":
            raise ValidationError("deviceId and targetWakeTime are required")

        wake_ts = parse_instant_ms(target_wake_time)
        if wake_ts is None:
            raise ValidationError(f"Invalid date format: {target_wake_time!r}")

        now = self.now()
        setting = AlarmSetting(
            target_wake_time=wake_ts,
            pattern=self._alarm_pattern(pattern),
            max_bright=self._max_bright(max_bright),
            interval_ms=self._interval_ms(interval_ms),
            set_at=now,
        )
        self._alarms[device_id] = setting

        device = self.registry.lookup(device_id)
        if device is not None:
            self._try_send(device, start_monitoring_command(now))

        logger.info(
            f"Alarm set for {device_id}: target={format_ms(wake_ts)} "
            f"pattern={setting.pattern} maxBright={setting.max_bright} "
            f"intervalMs={setting.interval_ms}"
        )
        return setting

    def cancel_alarm(self, device_id: Any) -> bool:
        """Drop the alarm for a device. Safe to repeat.

        Returns:
            True if a cancel command reached an open device transport
        """
        if not device_id:
            raise ValidationError("deviceId is required")

        delivered = False
        device = self.registry.lookup(device_id)
        if device is not None:
            delivered = self._try_send(device, cancel_alarm_command(self.now()))
            device.alarm_active = False
            if device.state in (DeviceState.SLEEP_DETECTED, DeviceState.ALARM_SCHEDULED):
                device.transition_to(DeviceState.CONNECTED, self.now())

        if self._alarms.pop(device_id, None) is not None:
            logger.info(f"Alarm cancelled for {device_id}")
        return delivered

    def request_start_monitoring(self, device_id: Any) -> None:
        """Ask a device to start monitoring."""
        self._require_device_id(device_id)
        self._send_command(device_id, start_monitoring_command(self.now()))

    def request_stop_monitoring(self, device_id: Any) -> None:
        """Ask a device to stop monitoring."""
        self._require_device_id(device_id)
        self._send_command(device_id, stop_monitoring_command(self.now()))

    def dimmer_power(self, device_id: Any, on: Any) -> bool:
        """Switch the device's bulb on or off."""
        self._require_device_id(device_id)
        if isinstance(on, bool):
            power = on
        elif is_number(on):
            power = bool(on)
        else:
            raise ValidationError("on must be a boolean")

        self._send_command(device_id, bulb_power_command(power))
        return power

    def dimmer_pattern(
        self,
        device_id: Any,
        pattern: Any,
        max_bright: Any = None,
        interval_ms: Any = None,
    ) -> Dict[str, Any]:
        """Start a dimming waveform on the device's bulb."""
        self._require_device_id(device_id)
        pattern_value = parse_int(pattern)
        if pattern_value is None or pattern_value < 1:
            raise ValidationError("pattern must be a positive integer")

        interval_value = parse_int(interval_ms)
        command = bulb_dimming_command(
            pattern=pattern_value,
            max_bright=self._max_bright(max_bright),
            interval_ms=interval_value if interval_value and interval_value > 0 else None,
        )
        self._send_command(device_id, command)
        return command

    def dimmer_brightness(self, device_id: Any, level: Any) -> int:
        """Hold the device's bulb at a fixed brightness (0-100)."""
        self._require_device_id(device_id)
        level_value = parse_int(level)
        if level_value is None:
            raise ValidationError("level must be a number")

        clamped = max(0, min(100, level_value))
        self._send_command(device_id, set_power_clamped_command(clamped))
        return clamped

    # ==================== Queries ====================

    def list_devices(self) -> List[Dict[str, Any]]:
        """Device-status entries for every registered device."""
        return [device.to_dict() for device in self.registry.devices()]

    def get_session(self, device_id: str) -> SleepSession:
        session = self.store.get_session(device_id)
        if session is None:
            raise NotFoundError(f"No sleep session for {device_id}")
        return session

    def get_alarm(self, device_id: str) -> AlarmSetting:
        setting = self._alarms.get(device_id)
        if setting is None:
            raise NotFoundError(f"No alarm set for {device_id}")
        return setting

    def broadcast_device_status(self) -> int:
        return self.dispatcher.broadcast(device_status_event(self.list_devices()))

    def shutdown(self) -> None:
        """Drop all in-memory state."""
        logger.info(
            f"SessionOrchestrator shutting down ({len(self.registry.devices())} devices, "
            f"{len(self.store)} sessions, {len(self._alarms)} alarms)"
        )
        self.registry.clear()
        self.store.clear()
        self._alarms.clear()

    # ==================== Internals ====================

    def _require_device_id(self, device_id: Any) -> None:
        if not device_id:
            raise ValidationError("deviceId is required")

    def _send_command(self, device_id: str, command: Dict[str, Any]) -> None:
        """Send a command the caller must hear about if it cannot be delivered.

        Raises:
            NotFoundError: Device is not registered
            DeviceUnavailableError: Device transport is closed
        """
        device = self.registry.lookup(device_id)
        if device is None:
            raise NotFoundError(f"Device {device_id} not found")
        if not device.transport.is_open:
            raise DeviceUnavailableError(f"Device {device_id} is not connected")

        device.transport.send(json.dumps(command))
        logger.debug(f"[{device_id}] {command['command']} sent")

    def _try_send(self, device: Device, command: Dict[str, Any]) -> bool:
        """Best-effort send. Returns False if the transport is not open."""
        if not device.transport.is_open:
            logger.warning(f"[{device.device_id}] {command['command']} dropped: transport closed")
            return False
        try:
            device.transport.send(json.dumps(command))
        except Exception as e:
            logger.warning(f"[{device.device_id}] {command['command']} failed: {e}")
            return False
        logger.debug(f"[{device.device_id}] {command['command']} sent")
        return True

    def _alarm_pattern(self, value: Any) -> int:
        pattern = parse_int(value)
        if pattern is None or pattern < 1:
            return self.settings.alarm.default_pattern
        return pattern

    def _max_bright(self, value: Any) -> int:
        bright = parse_int(value)
        if bright is None:
            return self.settings.alarm.default_max_bright
        return max(0, min(100, bright))

    def _interval_ms(self, value: Any) -> int:
        interval = parse_int(value)
        if interval is None or interval < self.settings.alarm.min_interval_ms:
            return self.settings.alarm.default_interval_ms
        return interval

    @staticmethod
    def _stored_or_default(value: Optional[int], default: int) -> int:
        return value if value is not None else default
