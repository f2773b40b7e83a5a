# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""API route handlers for the sleep hub."""

from sleephub.api.routes import alarm, devices, dimmer, health, sleep, websocket

__all__ = ["health", "devices", "sleep", "alarm", "dimmer", "websocket"]
