"""Shared application state for the relay server.

Holds the last transform received from the capture app and a registry of
connected WebSocket clients so that any route can broadcast updates.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from fastapi import WebSocket

from .models import TransformPayload

logger = logging.getLogger("gesture.server.state")


class AppState:
    """Singleton-style application state shared across all routes."""

    def __init__(self) -> None:
        self.last_transform: Optional[TransformPayload] = None
        self.received = 0
        self._clients: list[WebSocket] = []

    @property
    def client_count(self) -> int:
        return len(self._clients)

    # ── WebSocket client management ──────────────────────────────

    def register(self, ws: WebSocket) -> None:
        self._clients.append(ws)
        logger.info("WebSocket client connected (%d total)", len(self._clients))

    def unregister(self, ws: WebSocket) -> None:
        if ws in self._clients:
            self._clients.remove(ws)
        logger.info("WebSocket client disconnected (%d total)", len(self._clients))

    async def broadcast(self, message: dict[str, Any]) -> None:
        """Send a JSON message to every connected WebSocket client."""
        payload = json.dumps(message)
        stale: list[WebSocket] = []
        for ws in self._clients:
            try:
                await ws.send_text(payload)
            except Exception:
                logger.debug("Dropping client after failed send", exc_info=True)
                stale.append(ws)
        for ws in stale:
            self.unregister(ws)

    # ── Transforms ───────────────────────────────────────────────

    def record(self, transform: TransformPayload) -> None:
        self.last_transform = transform
        self.received += 1

    def reset(self) -> None:
        self.last_transform = None
        self.received = 0


# Module-level singleton used by all routes.
app_state = AppState()
