"""Gesture relay server -- FastAPI entry point.

Start with::

    uvicorn gesture_manipulator.server.main:app --host 0.0.0.0 --port 8000

or the ``gesture-relay`` console script.
"""

from __future__ import annotations

import logging
import os

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routes import transform, ws
from .state import app_state

# ── Logging ──────────────────────────────────────────────────────────

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(name)-24s  %(levelname)-7s  %(message)s",
    datefmt="%H:%M:%S",
)

# ── App ──────────────────────────────────────────────────────────────

app = FastAPI(
    title="Gesture Relay Server",
    description=(
        "Receives object transforms from the hand-gesture capture app and "
        "streams them to connected 3-D viewers over WebSocket."
    ),
    version="0.1.0",
)

# Allow all origins so browser viewers and local scripts can reach us.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routes ───────────────────────────────────────────────────────────

app.include_router(transform.router)
app.include_router(ws.router)


@app.get("/health")
async def health() -> dict:
    """Simple health-check endpoint."""
    return {"status": "ok", "clients": app_state.client_count, "received": app_state.received}


def run() -> None:
    uvicorn.run(
        app,
        host=os.environ.get("GESTURE_SERVER_HOST", "0.0.0.0"),
        port=int(os.environ.get("GESTURE_SERVER_PORT", "8000")),
    )


if __name__ == "__main__":
    run()
