from sleephub.analysis.scheduler import CYCLE_MS, alarm_delay_ms, compute_alarm

from conftest import MINUTE, T0


def test_target_inside_first_cycle_uses_target() -> None:
    target = T0 + 45 * MINUTE

    calc = compute_alarm(target, T0)

    assert calc.recommended_time == target
    assert calc.optimal_wake_time == target
    assert calc.cycles_to_target == 0


def test_one_cycle_fits() -> None:
    calc = compute_alarm(T0 + 100 * MINUTE, T0)

    assert calc.recommended_time == T0 + 90 * MINUTE
    assert calc.cycles_to_target == 1


def test_two_cycles_fit() -> None:
    calc = compute_alarm(T0 + 200 * MINUTE, T0)

    assert calc.recommended_time == T0 + 180 * MINUTE
    assert calc.cycles_to_target == 2


def test_target_exactly_on_cycle_boundary() -> None:
    calc = compute_alarm(T0 + 2 * CYCLE_MS, T0)

    assert calc.recommended_time == T0 + 2 * CYCLE_MS
    assert calc.cycles_to_target == 2


def test_target_in_the_past_uses_target() -> None:
    target = T0 - 5 * MINUTE

    calc = compute_alarm(target, T0)

    assert calc.recommended_time == target
    assert calc.cycles_to_target == 0


def test_recommended_never_after_target() -> None:
    for minutes in range(0, 12 * 60, 7):
        target = T0 + minutes * MINUTE
        calc = compute_alarm(target, T0)
        assert calc.recommended_time <= target
        assert calc.optimal_wake_time == calc.recommended_time


def test_custom_cycle_length() -> None:
    calc = compute_alarm(T0 + 130 * MINUTE, T0, cycle_ms=60 * MINUTE)

    assert calc.recommended_time == T0 + 120 * MINUTE
    assert calc.cycles_to_target == 2


def test_alarm_delay_has_a_floor() -> None:
    assert alarm_delay_ms(T0 + 5000, T0) == 5000
    assert alarm_delay_ms(T0 + 10, T0) == 1000
    assert alarm_delay_ms(T0 - 60_000, T0) == 1000
    assert alarm_delay_ms(T0 + 10, T0, min_delay_ms=0) == 10
