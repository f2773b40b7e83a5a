# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Connection registry.

Tracks every live transport and tags it with a role. A transport starts as
an OBSERVER and becomes a DEVICE when it reports "connected" for a device
id. Device ids are last-write-wins: a device reconnecting on a new transport
replaces the old entry and the old transport goes back to being an observer.
"""

import logging
from typing import Dict, List, Optional

from sleephub.hub.transport import Transport
from sleephub.models.device import Device, DeviceState, TransportRole

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """Live transports, their roles, and the devices they carry."""

    def __init__(self):
        self._roles: Dict[Transport, TransportRole] = {}
        self._devices: Dict[str, Device] = {}
        self._owners: Dict[Transport, str] = {}

    def attach(self, transport: Transport) -> None:
        """Track a newly opened transport as an observer."""
        self._roles.setdefault(transport, TransportRole.OBSERVER)

    def detach(self, transport: Transport) -> Optional[Device]:
        """Forget a closed transport.

        Returns:
            The device that was carried by the transport, if any
        """
        device = self.unregister_by_transport(transport)
        self._roles.pop(transport, None)
        return device

    def register_device(
        self,
        transport: Transport,
        device_id: str,
        connected_at: int,
        is_monitoring: bool = False,
        alarm_active: bool = False,
    ) -> Device:
        """Register (or replace) the device carried by a transport.

        Args:
            transport: Transport the "connected" message arrived on
            device_id: Device identifier from the message
            connected_at: Server time of registration (epoch ms)
            is_monitoring: Monitoring flag reported by the device
            alarm_active: Alarm flag reported by the device

        Returns:
            The new Device entry
        """
        # One transport, one device id
        previous_id = self._owners.get(transport)
        if previous_id is not None and previous_id != device_id:
            self._devices.pop(previous_id, None)
            logger.info(f"Transport re-registered: {previous_id} -> {device_id}")

        existing = self._devices.get(device_id)
        if existing is not None and existing.transport is not transport:
            self._owners.pop(existing.transport, None)
            if existing.transport in self._roles:
                self._roles[existing.transport] = TransportRole.OBSERVER
            logger.warning(f"Device {device_id} reconnected on a new transport")

        device = Device(
            device_id=device_id,
            transport=transport,
            connected_at=connected_at,
            is_monitoring=is_monitoring,
            alarm_active=alarm_active,
            state_changed_at=connected_at,
        )
        self._devices[device_id] = device
        self._owners[transport] = device_id
        self._roles[transport] = TransportRole.DEVICE
        return device

    def unregister_by_transport(self, transport: Transport) -> Optional[Device]:
        """Drop the device carried by a transport, if any.

        The transport itself stays tracked as an observer until detached.
        """
        device_id = self._owners.pop(transport, None)
        if device_id is None:
            return None

        device = self._devices.pop(device_id, None)
        if transport in self._roles:
            self._roles[transport] = TransportRole.OBSERVER
        if device is not None:
            device.state = DeviceState.DISCONNECTED
        return device

    def lookup(self, device_id: str) -> Optional[Device]:
        """Get a device by ID."""
        return self._devices.get(device_id)

    def is_observer(self, transport: Transport) -> bool:
        """True unless a device entry owns this transport."""
        return self._roles.get(transport, TransportRole.OBSERVER) is TransportRole.OBSERVER

    def role_of(self, transport: Transport) -> Optional[TransportRole]:
        """Role of a tracked transport, None if unknown."""
        return self._roles.get(transport)

    def observers(self) -> List[Transport]:
        """All tracked transports with the observer role."""
        return [t for t, role in self._roles.items() if role is TransportRole.OBSERVER]

    def devices(self) -> List[Device]:
        """All registered devices."""
        return list(self._devices.values())

    @property
    def transport_count(self) -> int:
        return len(self._roles)

    def clear(self) -> None:
        """Forget everything."""
        self._roles.clear()
        self._devices.clear()
        self._owners.clear()
