"""
Preview overlay (Tasks API, mediapipe >= 0.10).

Draws hand landmarks, the active manipulation mode, the locked rotation
axis and the current root transform onto the OpenCV preview frame.
"""

from __future__ import annotations

import math
from typing import Optional

import cv2
import mediapipe as mp
import numpy as np

from gesture_manipulator.config import (
    INDEX_TIP,
    OVERLAY_AXIS_COLORS,
    OVERLAY_FONT_SCALE,
    OVERLAY_INFO_COLOR,
    OVERLAY_MODE_COLOR,
    OVERLAY_THICKNESS,
    THUMB_TIP,
)
from gesture_manipulator.controller import ObjectTransform
from gesture_manipulator.state import GestureMode, RotationAxis

_drawing_utils = mp.tasks.vision.drawing_utils
_DrawingSpec = _drawing_utils.DrawingSpec
_HandConns = mp.tasks.vision.HandLandmarksConnections

_LANDMARK_STYLE = _DrawingSpec(color=(121, 22, 76), thickness=2, circle_radius=3)
_CONNECTION_STYLE = _DrawingSpec(color=(250, 44, 250), thickness=2)
_PINCH_COLOR = (0, 0, 255)


def format_transform(transform: ObjectTransform) -> str:
    x, y, z = (float(v) for v in transform.position)
    return (
        f"pos ({x:+.2f}, {y:+.2f}, {z:+.2f})  "
        f"yaw {math.degrees(transform.yaw):+.0f}  "
        f"roll {math.degrees(transform.roll):+.0f}  "
        f"scale {transform.scale:.2f}"
    )


def draw_hands(
    frame: np.ndarray,
    mp_landmarks: list,
    pinching: tuple[bool, bool] = (False, False),
) -> np.ndarray:
    """Draw landmarks and pinch markers on the unmirrored camera frame."""
    h, w, _ = frame.shape
    for slot, hand in enumerate(mp_landmarks[:2]):
        _drawing_utils.draw_landmarks(
            frame,
            hand,
            _HandConns.HAND_CONNECTIONS,
            _LANDMARK_STYLE,
            _CONNECTION_STYLE,
        )
        if slot < len(pinching) and pinching[slot] and len(hand) > INDEX_TIP:
            cx = int((hand[THUMB_TIP].x + hand[INDEX_TIP].x) / 2 * w)
            cy = int((hand[THUMB_TIP].y + hand[INDEX_TIP].y) / 2 * h)
            cv2.circle(frame, (cx, cy), 10, _PINCH_COLOR, 2, cv2.LINE_AA)
    return frame


def draw_hud(
    frame: np.ndarray,
    mode: GestureMode,
    axis: Optional[RotationAxis] = None,
    transform: Optional[ObjectTransform] = None,
    status: Optional[str] = None,
) -> np.ndarray:
    """Draw text elements onto *frame* (mutates in place and returns it).

    Called after the preview has been mirrored so the text reads normally.
    """
    h, _, _ = frame.shape

    # 1. Mode label (large, top-left).
    if mode != GestureMode.NONE:
        cv2.putText(
            frame,
            mode.value,
            (20, 60),
            cv2.FONT_HERSHEY_SIMPLEX,
            OVERLAY_FONT_SCALE * 1.4,
            OVERLAY_MODE_COLOR,
            OVERLAY_THICKNESS + 1,
            cv2.LINE_AA,
        )

    # 2. Locked axis while fist-rotating.
    if mode == GestureMode.FIST_ROTATION:
        label = f"axis: {axis.value if axis else '--'}"
        color = OVERLAY_AXIS_COLORS.get(axis.value, OVERLAY_INFO_COLOR) if axis else OVERLAY_INFO_COLOR
        cv2.putText(
            frame,
            label,
            (20, 100),
            cv2.FONT_HERSHEY_SIMPLEX,
            OVERLAY_FONT_SCALE * 0.8,
            color,
            OVERLAY_THICKNESS,
            cv2.LINE_AA,
        )

    # 3. Transform readout (bottom-left).
    if transform is not None:
        cv2.putText(
            frame,
            format_transform(transform),
            (20, h - 20),
            cv2.FONT_HERSHEY_SIMPLEX,
            OVERLAY_FONT_SCALE * 0.55,
            OVERLAY_INFO_COLOR,
            1,
            cv2.LINE_AA,
        )

    # 4. Status line (calibration etc.).
    if status:
        cv2.putText(
            frame,
            status,
            (20, h - 50),
            cv2.FONT_HERSHEY_SIMPLEX,
            OVERLAY_FONT_SCALE * 0.55,
            OVERLAY_INFO_COLOR,
            1,
            cv2.LINE_AA,
        )

    return frame
