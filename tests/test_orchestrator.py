import pytest

from sleephub.config import SchedulerSettings, Settings
from sleephub.errors import DeviceUnavailableError, NotFoundError, ValidationError
from sleephub.hub.orchestrator import SessionOrchestrator
from sleephub.models.device import DeviceState

from conftest import HOUR, MINUTE, T0, FakeClock, FakeTransport, device_message


def _sleep_batch(*stages: int) -> str:
    return device_message(
        "esp32-01",
        data_type="sleep_data",
        data=[
            {"sleep_stage": stage, "movement_score": 0.1 * i, "timestamp": 5000 * i}
            for i, stage in enumerate(stages)
        ],
    )


def test_connect_registers_device_and_notifies_observers(orchestrator, observer, device) -> None:
    assert [d["deviceId"] for d in orchestrator.list_devices()] == ["esp32-01"]

    status = observer.events("device_status")[-1]
    assert status["devices"][0]["deviceId"] == "esp32-01"
    assert status["devices"][0]["isMonitoring"] is False
    assert status["devices"][0]["connectedAt"] == T0
    assert device.sent == []


def test_observers_and_devices_receive_separate_traffic(orchestrator, observer, device) -> None:
    orchestrator.handle_message(device, _sleep_batch(2, 2))
    orchestrator.request_start_monitoring("esp32-01")

    assert observer.commands() == []
    assert [e["type"] for e in device.sent if "type" in e] == []
    assert observer.events("sleep_data")
    assert device.commands("start_monitoring")


def test_end_to_end_alarm(orchestrator, clock, observer, device) -> None:
    target = T0 + 4 * HOUR
    orchestrator.set_alarm("esp32-01", target)

    start = device.commands("start_monitoring")
    assert start == [{"command": "start_monitoring", "timestamp": T0}]

    orchestrator.handle_message(device, device_message("esp32-01", data_type="device_status", status="monitoring_started"))
    clock.advance(10 * MINUTE)
    orchestrator.handle_message(device, device_message("esp32-01", data_type="device_status", status="sleep_detected"))

    assert device.commands("set_alarm") == [{"command": "set_alarm", "delay_ms": 10_800_000}]

    detected = observer.events("sleep_detected")
    assert len(detected) == 1
    assert detected[0]["deviceId"] == "esp32-01"
    assert detected[0]["sleepInfo"] == {
        "sleepStartTime": T0 + 10 * MINUTE,
        "recommendedAlarmTime": T0 + 190 * MINUTE,
        "cyclesToTarget": 2,
    }

    alarm = orchestrator.get_alarm("esp32-01")
    assert alarm.sleep_detected is True
    assert alarm.recommended_time == T0 + 190 * MINUTE
    assert orchestrator.registry.lookup("esp32-01").state is DeviceState.ALARM_SCHEDULED


def test_alarm_triggered_starts_dimming(orchestrator, clock, observer, device) -> None:
    orchestrator.set_alarm("esp32-01", T0 + 4 * HOUR, pattern=3, max_bright=70, interval_ms=1500)
    orchestrator.sleep_detected("esp32-01")
    clock.advance(3 * HOUR)

    orchestrator.handle_message(device, device_message("esp32-01", data_type="device_status", status="alarm_triggered"))

    assert device.commands("bulb_dimming") == [
        {"command": "bulb_dimming", "pattern": 3, "maxBright": 70, "interval_ms": 1500}
    ]
    assert observer.events("alarm_triggered") == [
        {"type": "alarm_triggered", "deviceId": "esp32-01", "timestamp": T0 + 3 * HOUR}
    ]
    assert orchestrator.get_alarm("esp32-01").triggered_at == T0 + 3 * HOUR
    assert orchestrator.registry.lookup("esp32-01").state is DeviceState.CONNECTED


def test_alarm_triggered_without_setting_only_notifies(orchestrator, observer, device) -> None:
    assert orchestrator.alarm_triggered("esp32-01") is False

    assert device.commands("bulb_dimming") == []
    assert len(observer.events("alarm_triggered")) == 1


def test_sleep_detected_without_alarm_is_a_no_op(orchestrator, observer, device) -> None:
    assert orchestrator.sleep_detected("esp32-01") is None

    assert device.commands("set_alarm") == []
    assert observer.events("sleep_detected") == []


def test_sleep_detected_for_unknown_device_is_a_no_op(orchestrator, observer) -> None:
    orchestrator.set_alarm("ghost", T0 + 4 * HOUR)

    assert orchestrator.sleep_detected("ghost") is None
    assert observer.events("sleep_detected") == []


def test_sleep_detected_near_target_uses_minimum_delay(orchestrator, device) -> None:
    orchestrator.set_alarm("esp32-01", T0 + 100)

    orchestrator.sleep_detected("esp32-01")

    assert device.commands("set_alarm") == [{"command": "set_alarm", "delay_ms": 1000}]


def test_repeated_detection_rearms(orchestrator, clock, device) -> None:
    orchestrator.set_alarm("esp32-01", T0 + 4 * HOUR)
    orchestrator.sleep_detected("esp32-01")
    clock.advance(70 * MINUTE)

    orchestrator.sleep_detected("esp32-01")

    delays = [c["delay_ms"] for c in device.commands("set_alarm")]
    assert delays == [180 * MINUTE, 90 * MINUTE]
    assert orchestrator.get_alarm("esp32-01").sleep_start_time == T0 + 70 * MINUTE


def test_repeated_detection_can_keep_first_alarm(clock) -> None:
    settings = Settings(scheduler=SchedulerSettings(rearm_on_redetect=False))
    orchestrator = SessionOrchestrator(settings=settings, clock=clock)
    device = FakeTransport()
    orchestrator.attach_transport(device)
    orchestrator.connect(device, "esp32-01")
    orchestrator.set_alarm("esp32-01", T0 + 4 * HOUR)

    orchestrator.sleep_detected("esp32-01")
    clock.advance(40 * MINUTE)
    assert orchestrator.sleep_detected("esp32-01") is None

    assert len(device.commands("set_alarm")) == 1


def test_detection_after_trigger_is_ignored(orchestrator, device) -> None:
    orchestrator.set_alarm("esp32-01", T0 + 4 * HOUR)
    orchestrator.alarm_triggered("esp32-01")

    assert orchestrator.sleep_detected("esp32-01") is None
    assert device.commands("set_alarm") == []


def test_cancel_is_idempotent(orchestrator, device) -> None:
    orchestrator.set_alarm("esp32-01", T0 + 4 * HOUR)
    orchestrator.sleep_detected("esp32-01")

    assert orchestrator.cancel_alarm("esp32-01") is True
    assert orchestrator.cancel_alarm("esp32-01") is True

    with pytest.raises(NotFoundError):
        orchestrator.get_alarm("esp32-01")
    assert len(device.commands("cancel_alarm")) == 2
    assert orchestrator.registry.lookup("esp32-01").state is DeviceState.CONNECTED


def test_cancel_for_unknown_device_succeeds(orchestrator) -> None:
    assert orchestrator.cancel_alarm("ghost") is False


def test_double_start_monitoring_leaves_one_empty_session(orchestrator, device) -> None:
    orchestrator.handle_message(device, _sleep_batch(1, 2))
    started = device_message("esp32-01", data_type="device_status", status="monitoring_started")

    orchestrator.handle_message(device, started)
    orchestrator.handle_message(device, started)

    session = orchestrator.get_session("esp32-01")
    assert len(session.samples) == 0
    assert len(orchestrator.store) == 1
    assert orchestrator.registry.lookup("esp32-01").is_monitoring is True


def test_sleep_data_is_stored_and_analyzed(orchestrator, observer, device) -> None:
    orchestrator.handle_message(device, _sleep_batch(0, 1, 2))

    session = orchestrator.get_session("esp32-01")
    assert len(session.samples) == 3
    assert session.last_analysis.deep_count == 1

    event = observer.events("sleep_data")[-1]
    assert event["analysis"]["sleepStage"] == 2
    assert event["analysis"]["stageCounts"] == {"awake": 1, "light": 1, "deep": 1}


def test_stop_monitoring_keeps_session(orchestrator, device) -> None:
    orchestrator.handle_message(device, _sleep_batch(2))

    orchestrator.handle_message(device, device_message("esp32-01", data_type="device_status", status="monitoring_stopped"))

    assert orchestrator.registry.lookup("esp32-01").is_monitoring is False
    assert len(orchestrator.get_session("esp32-01").samples) == 1


def test_status_report_refreshes_flags(orchestrator, observer, device) -> None:
    orchestrator.handle_message(
        device,
        device_message("esp32-01", data_type="device_status", monitoring=True, alarm_active=True),
    )

    entry = observer.events("device_status")[-1]["devices"][0]
    assert entry["isMonitoring"] is True
    assert entry["alarmActive"] is True


def test_malformed_message_is_dropped(orchestrator, observer, device) -> None:
    before = len(observer.sent)

    orchestrator.handle_message(device, "{not json")
    orchestrator.handle_message(device, '{"device_id": "esp32-01", "status": "on_fire"}')

    assert len(observer.sent) == before
    assert orchestrator.registry.lookup("esp32-01") is not None


def test_disconnect_removes_device_but_keeps_session_and_alarm(orchestrator, observer, device) -> None:
    orchestrator.handle_message(device, _sleep_batch(1))
    orchestrator.set_alarm("esp32-01", T0 + 4 * HOUR)

    orchestrator.detach_transport(device)

    assert orchestrator.list_devices() == []
    assert observer.events("device_status")[-1]["devices"] == []
    assert orchestrator.get_session("esp32-01") is not None
    assert orchestrator.get_alarm("esp32-01") is not None


def test_set_alarm_applies_defaults(orchestrator) -> None:
    setting = orchestrator.set_alarm("esp32-01", str(T0 + HOUR), interval_ms=50)

    assert setting.target_wake_time == T0 + HOUR
    assert setting.pattern == 1
    assert setting.max_bright == 100
    assert setting.interval_ms == 4000
    assert setting.set_at == T0


def test_set_alarm_clamps_brightness(orchestrator) -> None:
    assert orchestrator.set_alarm("esp32-01", T0 + HOUR, max_bright=250).max_bright == 100
    assert orchestrator.set_alarm("esp32-01", T0 + HOUR, max_bright=-5).max_bright == 0


def test_set_alarm_accepts_iso_times(orchestrator) -> None:
    setting = orchestrator.set_alarm("esp32-01", "2025-01-01T06:30:00Z")

    assert setting.target_wake_time == T0 + 6 * HOUR + 30 * MINUTE


@pytest.mark.parametrize(
    "device_id, target",
    [
        (None, T0),
        ("", T0),
        ("esp32-01", None),
        ("esp32-01", ""),
        ("esp32-01", "tomorrow-ish"),
        ("esp32-01", float("nan")),
        ("esp32-01", 1e17),
        ("esp32-01", -1e17),
        ("esp32-01", "1e17"),
        ("esp32-01", "+275760-09-14T00:00:00Z"),
    ],
)
def test_set_alarm_rejects_bad_input(orchestrator, device_id, target) -> None:
    with pytest.raises(ValidationError):
        orchestrator.set_alarm(device_id, target)

    with pytest.raises(NotFoundError):
        orchestrator.get_alarm("esp32-01")


def test_set_alarm_before_device_connects(orchestrator) -> None:
    orchestrator.set_alarm("esp32-01", T0 + 4 * HOUR)

    late = FakeTransport()
    orchestrator.attach_transport(late)
    orchestrator.connect(late, "esp32-01")
    orchestrator.sleep_detected("esp32-01")

    assert late.commands("set_alarm") == [{"command": "set_alarm", "delay_ms": 180 * MINUTE}]


def test_commands_to_unknown_device_raise_not_found(orchestrator) -> None:
    with pytest.raises(NotFoundError):
        orchestrator.request_start_monitoring("ghost")
    with pytest.raises(NotFoundError):
        orchestrator.dimmer_power("ghost", True)


def test_commands_to_closed_device_raise_unavailable(orchestrator, device) -> None:
    device.is_open = False

    with pytest.raises(DeviceUnavailableError):
        orchestrator.request_stop_monitoring("esp32-01")
    with pytest.raises(DeviceUnavailableError):
        orchestrator.dimmer_brightness("esp32-01", 30)


def test_commands_require_device_id(orchestrator) -> None:
    with pytest.raises(ValidationError):
        orchestrator.request_start_monitoring("")
    with pytest.raises(ValidationError):
        orchestrator.cancel_alarm(None)


def test_dimmer_commands(orchestrator, device) -> None:
    orchestrator.dimmer_power("esp32-01", False)
    orchestrator.dimmer_pattern("esp32-01", 4, max_bright=60)
    orchestrator.dimmer_pattern("esp32-01", "2", interval_ms=800)
    orchestrator.dimmer_brightness("esp32-01", 150)
    orchestrator.dimmer_brightness("esp32-01", -3)

    assert device.commands() == [
        {"command": "bulb_power", "on": False},
        {"command": "bulb_dimming", "pattern": 4, "maxBright": 60},
        {"command": "bulb_dimming", "pattern": 2, "maxBright": 100, "interval_ms": 800},
        {"command": "set_power_clamped", "level": 100},
        {"command": "set_power_clamped", "level": 0},
    ]


def test_dimmer_rejects_missing_fields(orchestrator, device) -> None:
    with pytest.raises(ValidationError):
        orchestrator.dimmer_power("esp32-01", None)
    with pytest.raises(ValidationError):
        orchestrator.dimmer_pattern("esp32-01", None)
    with pytest.raises(ValidationError):
        orchestrator.dimmer_brightness("esp32-01", "bright")


def test_queries_raise_not_found(orchestrator) -> None:
    with pytest.raises(NotFoundError):
        orchestrator.get_session("ghost")
    with pytest.raises(NotFoundError):
        orchestrator.get_alarm("ghost")


def test_shutdown_clears_state(orchestrator, device) -> None:
    orchestrator.set_alarm("esp32-01", T0 + HOUR)

    orchestrator.shutdown()

    assert orchestrator.list_devices() == []
    with pytest.raises(NotFoundError):
        orchestrator.get_alarm("esp32-01")


def test_clock_is_injectable() -> None:
    clock = FakeClock(now=42)
    orchestrator = SessionOrchestrator(settings=Settings(), clock=clock)

    assert orchestrator.now() == 42


def test_far_future_wake_time_still_schedules(orchestrator, device) -> None:
    target = 8_000_000_000_000_000

    orchestrator.set_alarm("esp32-01", target)
    calc = orchestrator.sleep_detected("esp32-01")

    assert calc is not None
    assert calc.recommended_time <= target
    assert len(device.commands("set_alarm")) == 1


def test_set_alarm_accepts_short_fractional_seconds(orchestrator) -> None:
    setting = orchestrator.set_alarm("esp32-01", "2025-01-01T06:30:00.5Z")

    assert setting.target_wake_time == T0 + 6 * HOUR + 30 * MINUTE + 500


def test_zero_brightness_alarm_keeps_its_settings(orchestrator, device) -> None:
    orchestrator.set_alarm("esp32-01", T0 + 4 * HOUR, max_bright=0, interval_ms=200)

    orchestrator.alarm_triggered("esp32-01")

    assert orchestrator.get_alarm("esp32-01").max_bright == 0
    assert device.commands("bulb_dimming") == [
        {"command": "bulb_dimming", "pattern": 1, "maxBright": 0, "interval_ms": 200}
    ]


def test_samples_survive_an_unknown_status(orchestrator, observer, device) -> None:
    orchestrator.handle_message(
        device,
        device_message(
            "esp32-01",
            data_type="sleep_data",
            status="battery_low",
            data=[{"sleep_stage": 2, "movement_score": 0.1, "timestamp": 1000}],
        ),
    )

    assert len(orchestrator.get_session("esp32-01").samples) == 1
    assert observer.events("sleep_data")
