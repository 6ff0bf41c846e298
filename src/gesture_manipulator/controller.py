"""
Per-mode transform handlers.

:class:`TransformController` owns the smoothing channels and one handler per
:class:`GestureMode`.  A handler reads the hands it needs from the frame,
updates the scene root and returns ``True`` when the root was (or may have
been) touched this tick.  A handler whose hands are missing returns ``False``
and leaves the transform frozen.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Optional

import numpy as np

from gesture_manipulator.axis_lock import AxisLock
from gesture_manipulator.config import FILTER_ADAPTIVE, MIN_DENOMINATOR, GestureConfig
from gesture_manipulator.errors import GestureEngineError
from gesture_manipulator.filters import AdaptiveFilter, ema, lerp_angle, wrap_angle
from gesture_manipulator.grab import GrabResolver
from gesture_manipulator.landmarks import (
    HandFrame,
    analyze_hand_rotation,
    estimate_camera_distance,
    pinch_center,
    planar_dist,
)
from gesture_manipulator.scene import SceneAdapter
from gesture_manipulator.state import GestureMode, GestureState

logger = logging.getLogger("gesture.controller")

Handler = Callable[[HandFrame, float], bool]


def _filter_params(config: GestureConfig) -> tuple:
    return (config.filter, config.min_cutoff, config.beta, config.d_cutoff)


@dataclass(frozen=True, eq=False)
class ObjectTransform:
    """Root transform produced by one tick."""

    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    yaw: float = 0.0
    roll: float = 0.0
    scale: float = 1.0
    mode: GestureMode = GestureMode.NONE

    def to_dict(self) -> dict:
        return {
            "position": [round(float(v), 4) for v in self.position],
            "yaw": round(self.yaw, 4),
            "roll": round(self.roll, 4),
            "scale": round(self.scale, 4),
            "mode": self.mode.value,
        }


class TransformController:
    def __init__(self, scene: SceneAdapter, config: GestureConfig, state: GestureState) -> None:
        self.scene = scene
        self.config = config
        self.state = state
        self.grab = GrabResolver(scene)
        self.axis_lock = AxisLock(config)

        # Smoothing channels, created on first use.
        self._pos_ema: Optional[np.ndarray] = None
        self._pos_filters: Optional[list[AdaptiveFilter]] = None
        self._yaw_filter: Optional[AdaptiveFilter] = None

        self._handlers: dict[GestureMode, Handler] = {
            GestureMode.NONE: self._no_transform,
            GestureMode.MOVE: self._move,
            GestureMode.ROTATE: self._rotate,
            GestureMode.FIST_ROTATION: self._fist_rotation,
            GestureMode.SCALE: self._scale,
            GestureMode.CAMERA: self._no_transform,
            GestureMode.POINT: self._no_transform,
        }
        missing = set(GestureMode) - set(self._handlers)
        if missing:
            raise GestureEngineError(f"No handler for modes: {sorted(m.value for m in missing)}")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def set_config(self, config: GestureConfig) -> None:
        """Swap the config; new filter family or parameters discard filter state."""
        if _filter_params(config) != _filter_params(self.config):
            self.reset_filters()
        self.config = config
        self.axis_lock.config = config

    def reset_filters(self) -> None:
        self._pos_ema = None
        self._pos_filters = None
        self._yaw_filter = None

    def apply(self, mode: GestureMode, frame: HandFrame, dt: float) -> Optional[ObjectTransform]:
        """Run the handler for *mode*; the new root transform, or ``None`` if untouched."""
        handler = self._handlers[mode]
        if not handler(frame, dt):
            return None
        return self.snapshot(mode)

    def snapshot(self, mode: GestureMode) -> ObjectTransform:
        root = self.scene.root
        return ObjectTransform(
            position=root.position.copy(),
            yaw=float(root.rotation[1]),
            roll=float(root.rotation[2]),
            scale=float(root.scale),
            mode=mode,
        )

    # ------------------------------------------------------------------
    # Smoothing
    # ------------------------------------------------------------------

    def _adaptive(self) -> AdaptiveFilter:
        cfg = self.config
        return AdaptiveFilter(cfg.min_cutoff, cfg.beta, cfg.d_cutoff)

    def _filter_position(self, point: np.ndarray, dt: float) -> np.ndarray:
        if self.config.filter == FILTER_ADAPTIVE:
            if self._pos_filters is None:
                self._pos_filters = [self._adaptive() for _ in range(3)]
            return np.array([f.filter(float(v), dt) for f, v in zip(self._pos_filters, point)])

        alpha = min(1.0, self.config.pos_alpha * 1.2)
        self._pos_ema = point.copy() if self._pos_ema is None else ema(self._pos_ema, point, alpha)
        return self._pos_ema.copy()

    def _restart_position_filter(self) -> None:
        self._pos_ema = None
        self._pos_filters = None

    def _approach_scale(self, target: float, sensitivity: float) -> None:
        root = self.scene.root
        gain = sensitivity * max(0.3, min(1.0, root.scale))
        scale = root.scale + (target - root.scale) * self.config.pos_alpha * gain
        root.scale = max(self.config.scale_min, min(self.config.scale_max, scale))

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _no_transform(self, frame: HandFrame, dt: float) -> bool:
        return False

    def _move(self, frame: HandFrame, dt: float) -> bool:
        hand = frame.hand(0)
        if hand is None:
            return False
        state = self.state
        cfg = self.config
        root = self.scene.root
        center = pinch_center(hand)

        if state.move_baseline_span is None:
            self.grab.resolve(state, center)
            self._restart_position_filter()

        point = self.scene.screen_to_world(float(center[0]), float(center[1]), 0.0)
        if point is None:
            return False
        hand_world = self._filter_position(np.asarray(point, dtype=np.float64), dt)

        distance = estimate_camera_distance(hand, cfg)
        if distance > 0:
            if state.move_baseline_span is None:
                state.move_baseline_span = distance
                state.move_baseline_scale = root.scale
                logger.info("Move started: hand distance %.3f m, scale %.3f", distance, root.scale)
            else:
                ratio = state.move_baseline_span / distance
                target = max(cfg.scale_min, min(cfg.scale_max, state.move_baseline_scale * ratio))
                self._approach_scale(target, cfg.move_scale_sensitivity)
                logger.debug(
                    "Scale by distance: d=%.3f ratio=%.3f target=%.3f scale=%.3f",
                    distance, ratio, target, root.scale,
                )

        root.position = self.grab.root_position(state, hand_world)
        return True

    def _rotate(self, frame: HandFrame, dt: float) -> bool:
        h0, h1 = frame.hand(0), frame.hand(1)
        if h0 is None or h1 is None:
            return False
        c0 = pinch_center(h0)
        c1 = pinch_center(h1)
        angle = math.atan2(c1[1] - c0[1], c1[0] - c0[0])

        root = self.scene.root
        if self.config.filter == FILTER_ADAPTIVE:
            if self._yaw_filter is None:
                self._yaw_filter = self._adaptive()
            root.rotation[1] = self._yaw_filter.filter(angle, dt)
        else:
            root.rotation[1] = lerp_angle(root.rotation[1], angle, self.config.rot_alpha * 0.8)
        return True

    def _fist_rotation(self, frame: HandFrame, dt: float) -> bool:
        hand = frame.hand(0)
        if hand is None:
            return False
        orientation = analyze_hand_rotation(hand)
        if orientation is None:
            return False

        state = self.state
        root = self.scene.root
        baseline = state.rotation_baseline
        if not baseline.is_set:
            baseline.yaw = orientation.yaw
            baseline.roll = orientation.roll
            baseline.model_yaw = float(root.rotation[1])
            baseline.model_roll = float(root.rotation[2])
            baseline.is_set = True
            state.selected_axis = None
            return True

        yaw_delta = math.degrees(wrap_angle(orientation.yaw - baseline.yaw))
        roll_delta = math.degrees(wrap_angle(orientation.roll - baseline.roll))
        step = self.axis_lock.update(state, yaw_delta, roll_delta, frame.timestamp)

        current_yaw = float(root.rotation[1])
        current_roll = float(root.rotation[2])
        target_yaw, target_roll = self.axis_lock.targets(state, step, current_yaw, current_roll)

        a = max(0.05, min(1.0, self.config.rot_alpha * 0.7))
        root.rotation[1] = lerp_angle(current_yaw, target_yaw, a)
        root.rotation[2] = lerp_angle(current_roll, target_roll, a)
        return True

    def _scale(self, frame: HandFrame, dt: float) -> bool:
        h0, h1 = frame.hand(0), frame.hand(1)
        if h0 is None or h1 is None:
            return False
        state = self.state
        cfg = self.config
        distance = planar_dist(pinch_center(h0), pinch_center(h1))

        baseline = state.pinch_scale_baseline
        state.pinch_scale_baseline = distance
        if baseline is None:
            return True
        if baseline <= MIN_DENOMINATOR:
            return False

        root = self.scene.root
        target = max(cfg.scale_min, min(cfg.scale_max, root.scale * distance / baseline))
        self._approach_scale(target, cfg.two_hand_scale_sensitivity)
        return True
