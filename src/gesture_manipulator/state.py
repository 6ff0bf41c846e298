"""Persistent gesture state.

:class:`GestureState` is the only mutable state the engine carries between
ticks.  The classifier drives mode transitions through :meth:`enter_mode`;
the per-mode handlers write baselines and grab data.  Leaving a mode
discards whatever that mode established so the next mode never observes
stale fields.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Hashable, Optional

import numpy as np

logger = logging.getLogger("gesture.state")


class GestureMode(str, Enum):
    """Manipulation modes, one active per tick."""

    NONE = "none"
    MOVE = "move"                     # one-hand pinch: drag + distance scale
    ROTATE = "rotate"                 # two-hand pinch, hands close: yaw
    FIST_ROTATION = "fist_rotation"   # one-hand fist: axis-locked yaw/roll
    SCALE = "scale"                   # two-hand pinch, hands apart
    CAMERA = "camera"                 # open palm(s): reserved, no transform
    POINT = "point"                   # index pointing: reserved, no transform


class RotationAxis(str, Enum):
    YAW = "yaw"
    ROLL = "roll"


def _zero() -> np.ndarray:
    return np.zeros(3)


@dataclass
class RotationBaseline:
    """Hand and model angles frozen on the first fist-rotation tick (radians)."""

    yaw: float = 0.0
    roll: float = 0.0
    model_yaw: float = 0.0
    model_roll: float = 0.0
    is_set: bool = False

    def clear(self) -> None:
        self.yaw = 0.0
        self.roll = 0.0
        self.model_yaw = 0.0
        self.model_roll = 0.0
        self.is_set = False


@dataclass
class GestureState:
    current_mode: GestureMode = GestureMode.NONE
    last_mode: GestureMode = GestureMode.NONE
    mode_start_time: float = 0.0

    # Grab bookkeeping (move mode).
    grab_offset: np.ndarray = field(default_factory=_zero)          # root-local grab point
    grab_world_pos: np.ndarray = field(default_factory=_zero)       # hand world point at grab
    grab_start_model_pos: np.ndarray = field(default_factory=_zero)
    hand_to_model_offset: np.ndarray = field(default_factory=_zero)
    has_valid_grab: bool = False
    grab_node_id: Optional[Hashable] = None                          # looked up via the scene
    grab_local_on_node: Optional[np.ndarray] = None

    # Distance-driven scale baseline (move mode).
    move_baseline_span: Optional[float] = None
    move_baseline_scale: Optional[float] = None

    # Fist rotation.
    rotation_baseline: RotationBaseline = field(default_factory=RotationBaseline)
    selected_axis: Optional[RotationAxis] = None
    last_axis_switch_at: float = 0.0

    # Two-hand scale baseline (inter-pinch distance).
    pinch_scale_baseline: Optional[float] = None

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def enter_mode(self, mode: GestureMode, now: float) -> bool:
        """Switch to *mode*, clearing what the previous mode established.

        Returns ``True`` if the mode changed.
        """
        if mode == self.current_mode:
            return False

        previous = self.current_mode
        if previous == GestureMode.MOVE:
            self.clear_grab()
        elif previous == GestureMode.FIST_ROTATION:
            self.rotation_baseline.clear()
        elif previous == GestureMode.SCALE:
            self.pinch_scale_baseline = None

        self.last_mode = previous
        self.current_mode = mode
        self.mode_start_time = now
        self.selected_axis = None

        logger.info("Gesture mode changed: %s -> %s", previous.value, mode.value)
        return True

    def clear_grab(self) -> None:
        self.grab_offset = _zero()
        self.grab_world_pos = _zero()
        self.grab_start_model_pos = _zero()
        self.hand_to_model_offset = _zero()
        self.has_valid_grab = False
        self.grab_node_id = None
        self.grab_local_on_node = None
        self.move_baseline_span = None
        self.move_baseline_scale = None

    def reset(self) -> None:
        """Back to defaults: no mode, no baselines, no grab."""
        self.clear_grab()
        self.rotation_baseline.clear()
        self.pinch_scale_baseline = None
        self.current_mode = GestureMode.NONE
        self.last_mode = GestureMode.NONE
        self.mode_start_time = 0.0
        self.selected_axis = None
        self.last_axis_switch_at = 0.0
