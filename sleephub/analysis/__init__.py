# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Pure sleep analysis and alarm scheduling functions."""

from sleephub.analysis.analyzer import analyze
from sleephub.analysis.scheduler import CYCLE_MS, alarm_delay_ms, compute_alarm

__all__ = ["CYCLE_MS", "alarm_delay_ms", "analyze", "compute_alarm"]
