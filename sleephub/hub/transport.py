# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Transport interface the hub core talks to.

A transport is one live bidirectional connection (a device or a dashboard).
Sends never block: implementations queue or write immediately and report a
closed connection through ``is_open`` before anything is sent.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class Transport(Protocol):
    """A live connection the hub can push text frames to."""

    @property
    def is_open(self) -> bool:
        """Whether the connection can still accept messages."""
        ...

    def send(self, text: str) -> None:
        """Queue one text frame for delivery."""
        ...
