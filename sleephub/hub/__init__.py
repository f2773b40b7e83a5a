# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Hub core: connection registry, sample store, broadcast, and orchestration."""

from sleephub.hub.broadcast import BroadcastDispatcher
from sleephub.hub.orchestrator import SessionOrchestrator
from sleephub.hub.registry import ConnectionRegistry
from sleephub.hub.store import SleepSampleStore
from sleephub.hub.transport import Transport

__all__ = [
    "BroadcastDispatcher",
    "ConnectionRegistry",
    "SessionOrchestrator",
    "SleepSampleStore",
    "Transport",
]
