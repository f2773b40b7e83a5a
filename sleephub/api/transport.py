# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""WebSocket-backed transport.

Each connection owns an outbox drained by its own writer task, so the hub
core can push frames without awaiting and a slow client never stalls the
event loop.
"""

import asyncio
import logging
from typing import Optional

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class WebSocketTransport:
    """Transport over one accepted FastAPI WebSocket."""

    def __init__(self, websocket: WebSocket):
        self._websocket = websocket
        self._outbox: "asyncio.Queue[str]" = asyncio.Queue()
        self._writer: Optional[asyncio.Task] = None
        self._open = True

    @property
    def is_open(self) -> bool:
        return self._open

    @property
    def peer(self) -> str:
        client = self._websocket.client
        return f"{client.host}:{client.port}" if client else "unknown"

    @property
    def pending(self) -> int:
        """Frames queued but not yet written."""
        return self._outbox.qsize()

    def start(self) -> None:
        """Start the writer task. Must be called from the event loop."""
        if self._writer is None:
            self._writer = asyncio.create_task(self._drain())

    def send(self, text: str) -> None:
        """Queue a frame. Frames sent after close are discarded."""
        if not self._open:
            logger.debug(f"Discarding frame for closed transport {self.peer}")
            return
        self._outbox.put_nowait(text)

    async def close(self) -> None:
        """Mark closed and stop the writer. Unsent frames are dropped."""
        self._open = False
        if self._writer is not None:
            self._writer.cancel()
            try:
                await self._writer
            except asyncio.CancelledError:
                pass
            self._writer = None

    async def _drain(self) -> None:
        while True:
            text = await self._outbox.get()
            try:
                await self._websocket.send_text(text)
            except Exception as e:
                logger.warning(f"Write to {self.peer} failed, closing transport: {e}")
                self._open = False
                return

    def __repr__(self) -> str:
        return f"WebSocketTransport({self.peer}, open={self._open})"
