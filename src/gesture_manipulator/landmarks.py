"""
Landmark frames and per-hand geometry.

A :class:`HandFrame` is the snapshot the perception backend hands to the
engine once per inference tick: up to two ``(21, 3)`` arrays of normalised
landmarks plus a capture timestamp.  Slot order is whatever the backend
reports; no identity tracking is attempted across frames.

The helpers below measure distances in the image plane (x, y) only.  MediaPipe
depth is relative and too noisy for thresholds, so z is used solely for the
palm orientation estimate.

Screen-space helpers (``hand_center``, ``pinch_center``) return coordinates
mirrored horizontally, because the camera preview is shown as a mirror.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

import numpy as np

from gesture_manipulator.config import (
    INDEX_MCP,
    INDEX_TIP,
    MIDDLE_MCP,
    MIN_DENOMINATOR,
    NUM_LANDMARKS,
    PINKY_MCP,
    THUMB_CMC,
    THUMB_TIP,
    WRIST,
    GestureConfig,
)


def as_landmark_array(points: Any) -> Optional[np.ndarray]:
    """Coerce one hand's landmarks to a ``(21, 3)`` float array.

    Accepts an ndarray, a sequence of ``(x, y[, z])`` tuples, dicts with
    ``x``/``y``/``z`` keys, or objects exposing ``.x``/``.y``/``.z`` (the
    MediaPipe ``NormalizedLandmark``).  Returns ``None`` when fewer than 21
    usable points are present, so a malformed hand counts as a missing one.
    """
    if points is None:
        return None
    if isinstance(points, np.ndarray):
        arr = np.asarray(points, dtype=np.float64)
        if arr.ndim != 2 or arr.shape[0] < NUM_LANDMARKS or arr.shape[1] < 2:
            return None
        out = np.zeros((NUM_LANDMARKS, 3), dtype=np.float64)
        out[:, : min(3, arr.shape[1])] = arr[:NUM_LANDMARKS, :3]
        return out

    rows: list[tuple[float, float, float]] = []
    for p in points:
        if hasattr(p, "x") and hasattr(p, "y"):
            rows.append((float(p.x), float(p.y), float(getattr(p, "z", 0.0) or 0.0)))
        elif isinstance(p, dict):
            rows.append((float(p["x"]), float(p["y"]), float(p.get("z", 0.0) or 0.0)))
        else:
            vals = list(p)
            z = float(vals[2]) if len(vals) > 2 else 0.0
            rows.append((float(vals[0]), float(vals[1]), z))
    if len(rows) < NUM_LANDMARKS:
        return None
    return np.array(rows[:NUM_LANDMARKS], dtype=np.float64)


@dataclass(frozen=True, eq=False)
class HandFrame:
    """Landmarks for 0-2 hands captured at one inference tick."""

    hands: tuple[np.ndarray, ...] = field(default_factory=tuple)
    timestamp: float = 0.0

    @classmethod
    def from_hands(cls, hands: Iterable[Any], timestamp: float = 0.0) -> HandFrame:
        """Build a frame from raw landmark lists, dropping malformed hands."""
        arrays = []
        for raw in hands:
            arr = as_landmark_array(raw)
            if arr is not None:
                arrays.append(arr)
        return cls(hands=tuple(arrays[:2]), timestamp=timestamp)

    @property
    def hand_count(self) -> int:
        return len(self.hands)

    def hand(self, slot: int) -> Optional[np.ndarray]:
        """Landmarks in *slot* (0 or 1), or ``None`` when that hand is absent."""
        if 0 <= slot < len(self.hands):
            return self.hands[slot]
        return None


# ---------------------------------------------------------------------------
# Distances
# ---------------------------------------------------------------------------


def planar_dist(a: np.ndarray, b: np.ndarray) -> float:
    """Euclidean distance in the image plane."""
    return float(math.hypot(a[0] - b[0], a[1] - b[1]))


def pinch_distance(hand: np.ndarray) -> float:
    """Thumb tip to index tip distance."""
    return planar_dist(hand[THUMB_TIP], hand[INDEX_TIP])


def hand_span(hand: Optional[np.ndarray]) -> float:
    """Palm width (index MCP to pinky MCP), used as a hand-size normaliser."""
    if hand is None:
        return 0.0
    return planar_dist(hand[INDEX_MCP], hand[PINKY_MCP])


def fingertip_to_wrist(hand: np.ndarray, tip: int) -> float:
    return planar_dist(hand[tip], hand[WRIST])


def hand_center(hand: np.ndarray) -> np.ndarray:
    """Mirrored screen point at the centroid of wrist, index MCP and pinky MCP."""
    cx = (hand[WRIST, 0] + hand[INDEX_MCP, 0] + hand[PINKY_MCP, 0]) / 3.0
    cy = (hand[WRIST, 1] + hand[INDEX_MCP, 1] + hand[PINKY_MCP, 1]) / 3.0
    return np.array([1.0 - cx, cy])


def pinch_center(hand: np.ndarray) -> np.ndarray:
    """Mirrored screen point halfway between the thumb and index tips."""
    cx = (hand[THUMB_TIP, 0] + hand[INDEX_TIP, 0]) / 2.0
    cy = (hand[THUMB_TIP, 1] + hand[INDEX_TIP, 1]) / 2.0
    return np.array([1.0 - cx, cy])


def hand_distance(h0: np.ndarray, h1: np.ndarray) -> float:
    """Distance between two hand centres."""
    c0 = hand_center(h0)
    c1 = hand_center(h1)
    return float(math.hypot(c0[0] - c1[0], c0[1] - c1[1]))


def estimate_camera_distance(hand: Optional[np.ndarray], config: GestureConfig) -> float:
    """Rough hand-to-camera distance in metres from the apparent palm width.

    Assumes a real palm width of ``config.palm_width_m`` scaled by the FOV
    correction factor, clamped to the configured range.  Returns 0.0 when the
    span is degenerate.
    """
    span = hand_span(hand)
    if span <= MIN_DENOMINATOR:
        return 0.0
    estimate = (config.palm_width_m * config.fov_factor) / span
    return max(config.hand_distance_min, min(config.hand_distance_max, estimate))


# ---------------------------------------------------------------------------
# Orientation
# ---------------------------------------------------------------------------


@dataclass
class HandOrientation:
    """Palm orientation angles in radians."""

    yaw: float        # palm facing direction, about the vertical axis
    roll: float       # wrist twist, about the viewing axis
    pitch: float      # hand tilted up/down
    palm_normal: np.ndarray


def analyze_hand_rotation(hand: Optional[np.ndarray]) -> Optional[HandOrientation]:
    """Estimate palm orientation from the wrist, middle MCP, thumb CMC and pinky MCP.

    Roll comes from the slope of the thumb-to-pinky base line, yaw from the
    palm normal (cross product of the hand direction and the palm width
    vectors), pitch from the wrist-to-middle-MCP direction.
    """
    if hand is None:
        return None

    direction = hand[MIDDLE_MCP] - hand[WRIST]
    width = hand[PINKY_MCP] - hand[THUMB_CMC]

    normal = np.cross(direction, width)
    length = float(np.linalg.norm(normal))
    if length > 0:
        normal = normal / length

    roll = math.atan2(width[1], abs(width[0]))
    yaw = math.atan2(normal[0], normal[2])
    pitch = math.atan2(-direction[1], math.hypot(direction[0], direction[2]))

    return HandOrientation(yaw=yaw, roll=roll, pitch=pitch, palm_normal=normal)
