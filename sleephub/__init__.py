# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Sleep hub service.

Bridges sleep-sensing devices and dashboard observers over WebSockets and
schedules wake-up alarms on 90-minute sleep cycle boundaries.
"""

__version__ = "0.1.0"
