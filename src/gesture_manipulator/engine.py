"""
Gesture engine -- one synchronous entry point per inference tick.

``process_frame(frame, dt)`` runs the whole pipeline for one
:class:`HandFrame`:

    pinch latch -> classify -> mode transition -> per-mode handler

and returns the resulting :class:`ObjectTransform` (also written to the
scene root), or ``None`` when nothing was manipulated this tick.

The engine owns all of its mutable state; several engines can coexist.
A call that arrives while another tick is still running is dropped.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Any, Optional

from gesture_manipulator.classifier import PinchLatch, classify
from gesture_manipulator.config import HAND_HISTORY_SIZE, GestureConfig
from gesture_manipulator.controller import ObjectTransform, TransformController
from gesture_manipulator.errors import SceneInterfaceError
from gesture_manipulator.landmarks import HandFrame
from gesture_manipulator.scene import SceneAdapter
from gesture_manipulator.state import GestureMode, GestureState

logger = logging.getLogger("gesture.engine")

_REQUIRED_METHODS = ("screen_to_world", "raycast", "resolve_node")
_REQUIRED_ATTRIBUTES = ("root", "camera")


def check_scene(scene: Any) -> None:
    """Raise :class:`SceneInterfaceError` if *scene* lacks a required query."""
    missing = [name for name in _REQUIRED_ATTRIBUTES if getattr(scene, name, None) is None]
    missing += [name for name in _REQUIRED_METHODS if not callable(getattr(scene, name, None))]
    if missing:
        raise SceneInterfaceError(
            f"Scene collaborator {type(scene).__name__} is missing: {', '.join(missing)}"
        )
    if not hasattr(scene.camera, "fov_deg"):
        raise SceneInterfaceError("Scene camera does not expose fov_deg")


class GestureEngine:
    """Turns hand frames into transforms of the scene's root node."""

    def __init__(self, scene: SceneAdapter, config: Optional[GestureConfig] = None) -> None:
        check_scene(scene)
        self.scene = scene
        self.config = (config or GestureConfig()).clamped()
        self.state = GestureState()
        self.latch = PinchLatch()
        self.history: deque[HandFrame] = deque(maxlen=HAND_HISTORY_SIZE)
        self.controller = TransformController(scene, self.config, self.state)
        self._lock = threading.Lock()
        self._enabled = True

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def mode(self) -> GestureMode:
        return self.state.current_mode

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def pinching(self) -> tuple[bool, bool]:
        return self.latch.flags

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def process_frame(self, frame: HandFrame, dt: float) -> Optional[ObjectTransform]:
        """Run one inference tick.

        *dt* is the time since the previous tick in seconds.  Returns the
        root transform after this tick, or ``None`` when the engine is
        disabled, the mode performs no transform, or the hands the mode
        needs are missing.
        """
        if not self._enabled:
            return None
        if not self._lock.acquire(blocking=False):
            logger.debug("Previous tick still running; skipping frame at %.3f", frame.timestamp)
            return None
        try:
            return self._tick(frame, dt)
        finally:
            self._lock.release()

    def _tick(self, frame: HandFrame, dt: float) -> Optional[ObjectTransform]:
        self.history.append(frame)
        flags = self.latch.update(frame, self.config)
        mode = classify(frame, self.config, flags)
        self.state.enter_mode(mode, frame.timestamp)
        return self.controller.apply(mode, frame, dt)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def set_config(self, config: GestureConfig) -> None:
        self.config = config.clamped()
        self.controller.set_config(self.config)
        logger.info("Gesture config updated (filter=%s)", self.config.filter)

    def set_enabled(self, enabled: bool) -> None:
        """Turn gesture processing on or off.

        Disabling clears all gesture and filter state so that re-enabling
        starts from scratch.
        """
        if enabled == self._enabled:
            return
        with self._lock:
            self._enabled = enabled
            if not enabled:
                self._clear()
        logger.info("Gesture tracking %s", "enabled" if enabled else "disabled")

    def reset(self) -> None:
        """Clear all gesture state and put the root back to identity."""
        with self._lock:
            self._clear()
            self.scene.root.reset_transform()
        logger.info("Model transform and gesture state reset")

    def _clear(self) -> None:
        self.state.reset()
        self.latch.reset()
        self.history.clear()
        self.controller.reset_filters()
