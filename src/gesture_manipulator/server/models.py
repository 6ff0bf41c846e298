"""Request and message models for the relay server."""

from __future__ import annotations

from pydantic import BaseModel, Field

from gesture_manipulator.state import GestureMode


class TransformPayload(BaseModel):
    """Root transform posted by the capture app once per active tick."""

    position: list[float] = Field(default_factory=lambda: [0.0, 0.0, 0.0], min_length=3, max_length=3)
    yaw: float = 0.0      # radians
    roll: float = 0.0     # radians
    scale: float = Field(default=1.0, gt=0.0)
    mode: GestureMode = GestureMode.NONE
    timestamp: float = 0.0

    def message(self) -> dict:
        """WebSocket broadcast form."""
        return {"type": "transform", **self.model_dump(mode="json")}
