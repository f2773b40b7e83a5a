# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Error types raised by the hub core.

Every error is local and reported synchronously to the caller of the
operation that raised it. Nothing is retried.
"""


class HubError(Exception):
    """Base class for errors reported to hub callers."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(HubError):
    """A required field is missing or malformed."""

    status_code = 400


class NotFoundError(HubError):
    """The device, session, or alarm does not exist."""

    status_code = 404


class DeviceUnavailableError(HubError):
    """The device is known but its transport is not open.

    The command is dropped, not queued.
    """

    status_code = 503


class ProtocolParseError(HubError):
    """An inbound transport message could not be understood."""

    status_code = 400
