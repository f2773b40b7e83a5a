# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Sleep-cycle alarm scheduling.

Waking at the end of a sleep cycle (light sleep) is easier than waking out
of deep sleep. Given when the sleeper fell asleep and the latest acceptable
wake time, pick the last cycle boundary that does not pass the wake time:

    reference          +1 cycle          +2 cycles     target
        |-----------------|-----------------|--------------|
                                            ^ recommended

If not even one full cycle fits before the target there is nothing to align
to and the target itself is used.
"""

from sleephub.models.device import AlarmCalculation

# One sleep cycle in milliseconds (90 minutes)
CYCLE_MS = 90 * 60 * 1000


def compute_alarm(
    target_wake_time: int,
    reference_start: int,
    cycle_ms: int = CYCLE_MS,
) -> AlarmCalculation:
    """Align a wake time to sleep cycle boundaries.

    Args:
        target_wake_time: Latest acceptable wake time (epoch ms)
        reference_start: When sleep started (epoch ms)
        cycle_ms: Sleep cycle length

    Returns:
        AlarmCalculation whose recommended_time never exceeds the target
    """
    if target_wake_time <= reference_start:
        return AlarmCalculation(
            optimal_wake_time=target_wake_time,
            cycles_to_target=0,
            recommended_time=target_wake_time,
        )

    first_cycle_end = reference_start + cycle_ms
    if first_cycle_end > target_wake_time:
        return AlarmCalculation(
            optimal_wake_time=target_wake_time,
            cycles_to_target=0,
            recommended_time=target_wake_time,
        )

    extra_cycles = (target_wake_time - first_cycle_end) // cycle_ms
    optimal = first_cycle_end + extra_cycles * cycle_ms

    return AlarmCalculation(
        optimal_wake_time=optimal,
        cycles_to_target=extra_cycles + 1,
        recommended_time=optimal,
    )


def alarm_delay_ms(recommended_time: int, now: int, min_delay_ms: int = 1000) -> int:
    """Countdown to hand a device, never shorter than min_delay_ms."""
    return max(recommended_time - now, min_delay_ms)
