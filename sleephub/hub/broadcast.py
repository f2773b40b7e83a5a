# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Fan-out of hub events to observer transports."""

import json
import logging
from typing import Any, Dict

from sleephub.hub.registry import ConnectionRegistry

logger = logging.getLogger(__name__)


class BroadcastDispatcher:
    """Pushes events to every open observer, never to devices.

    Delivery is fire-and-forget: one failing observer is logged and skipped.
    """

    def __init__(self, registry: ConnectionRegistry):
        self._registry = registry

    def broadcast(self, event: Dict[str, Any]) -> int:
        """Send an event to all observers.

        Args:
            event: JSON-serializable event

        Returns:
            Number of observers the event was handed to
        """
        message = json.dumps(event)
        delivered = 0

        for transport in self._registry.observers():
            if not transport.is_open:
                continue
            try:
                transport.send(message)
                delivered += 1
            except Exception as e:
                logger.warning(f"Broadcast to {transport!r} failed: {e}")

        logger.debug(f"Broadcast {event.get('type')} to {delivered} observer(s)")
        return delivered
