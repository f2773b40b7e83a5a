# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""WebSocket endpoint shared by devices and dashboards.

Every connection starts as an observer. It becomes a device connection when
it sends a "connected" status for a device id.
"""

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from sleephub.api.transport import WebSocketTransport

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/")
@router.websocket("/ws")
async def hub_socket(websocket: WebSocket):
    """Read frames and hand each one to the orchestrator."""
    orchestrator = websocket.app.state.orchestrator

    await websocket.accept()
    transport = WebSocketTransport(websocket)
    transport.start()
    orchestrator.attach_transport(transport)
    logger.info(f"WebSocket connected: {transport.peer}")

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break

            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes")
            if raw is None:
                continue

            try:
                orchestrator.handle_message(transport, raw)
            except Exception:
                # One bad message must not take the connection down
                logger.exception(f"Error handling message from {transport.peer}")
    except WebSocketDisconnect:
        pass
    finally:
        orchestrator.detach_transport(transport)
        await transport.close()
        logger.info(f"WebSocket disconnected: {transport.peer}")
