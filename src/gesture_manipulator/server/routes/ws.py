"""WebSocket /ws -- real-time transform stream to viewers."""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..state import app_state

logger = logging.getLogger("gesture.server.routes.ws")

router = APIRouter()


@router.websocket("/ws")
async def websocket_endpoint(ws: WebSocket) -> None:
    """Accept a viewer and keep the connection open.

    A viewer joining mid-gesture first receives the last known transform,
    then every broadcast.  Messages sent by the client are logged only.
    """
    await ws.accept()
    app_state.register(ws)

    try:
        if app_state.last_transform is not None:
            await ws.send_text(json.dumps(app_state.last_transform.message()))
        while True:
            data = await ws.receive_text()
            logger.debug("WS received from client: %s", data[:200])
    except WebSocketDisconnect:
        pass
    finally:
        app_state.unregister(ws)
