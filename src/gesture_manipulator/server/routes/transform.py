"""POST / GET /transform -- receive transforms from the capture app."""

from __future__ import annotations

import logging

from fastapi import APIRouter

from ..models import TransformPayload
from ..state import app_state

logger = logging.getLogger("gesture.server.routes.transform")

router = APIRouter()


@router.post("/transform")
async def receive_transform(transform: TransformPayload) -> dict:
    """Store the transform and broadcast it to every viewer."""
    app_state.record(transform)
    await app_state.broadcast(transform.message())
    logger.debug(
        "Transform (%s) scale=%.3f -> %d clients",
        transform.mode.value, transform.scale, app_state.client_count,
    )
    return {"status": "ok", "clients": app_state.client_count}


@router.get("/transform")
async def get_transform() -> dict:
    """Return the most recent transform, if any."""
    last = app_state.last_transform
    return {"transform": last.model_dump(mode="json") if last is not None else None}
