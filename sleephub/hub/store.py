# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Per-device sleep sample sessions, held in memory."""

import logging
from typing import Dict, Iterable, Optional

from sleephub.models.device import SleepSample, SleepSession

logger = logging.getLogger(__name__)


class SleepSampleStore:
    """One append-only, bounded sample session per device."""

    def __init__(self, max_samples: Optional[int] = None):
        self.max_samples = max_samples
        self._sessions: Dict[str, SleepSession] = {}

    def start_session(self, device_id: str, now: int) -> SleepSession:
        """Start a fresh session, discarding any previous one."""
        session = SleepSession(device_id=device_id, start_time=now, max_samples=self.max_samples)
        self._sessions[device_id] = session
        return session

    def append_samples(
        self,
        device_id: str,
        samples: Iterable[SleepSample],
        now: int,
    ) -> SleepSession:
        """Append a batch in arrival order.

        A session is started on the fly when data arrives before any
        monitoring-started event.
        """
        session = self._sessions.get(device_id)
        if session is None:
            logger.debug(f"Starting implicit session for {device_id}")
            session = self.start_session(device_id, now)
        session.extend(samples)
        return session

    def get_session(self, device_id: str) -> Optional[SleepSession]:
        return self._sessions.get(device_id)

    def __contains__(self, device_id: str) -> bool:
        return device_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def clear(self) -> None:
        self._sessions.clear()
