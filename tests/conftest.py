"""Synthetic hand poses and scene fixtures."""

from __future__ import annotations

import math

import numpy as np
import pytest

from gesture_manipulator.config import (
    CURL_PAIRS,
    INDEX_MCP,
    INDEX_TIP,
    MIDDLE_TIP,
    PINKY_MCP,
    PINKY_TIP,
    RING_TIP,
    THUMB_TIP,
    WRIST,
    GestureConfig,
)
from gesture_manipulator.landmarks import HandFrame
from gesture_manipulator.scene import Scene, SceneNode

# Open right hand seen from the camera, wrist at the bottom.  Every tip is
# farther than 0.12 from the wrist; palm width (index MCP to pinky MCP) is
# about 0.122.
_OPEN_HAND = np.array(
    [
        (0.50, 0.70, 0.0),   # wrist
        (0.45, 0.65, 0.0),   # thumb cmc
        (0.42, 0.60, 0.0),   # thumb mcp
        (0.40, 0.56, 0.0),   # thumb ip
        (0.38, 0.52, 0.0),   # thumb tip
        (0.46, 0.55, 0.0),   # index mcp
        (0.46, 0.50, 0.0),
        (0.46, 0.46, 0.0),
        (0.46, 0.42, 0.0),   # index tip
        (0.50, 0.54, 0.0),   # middle mcp
        (0.50, 0.48, 0.0),
        (0.50, 0.44, 0.0),
        (0.50, 0.40, 0.0),   # middle tip
        (0.54, 0.55, 0.0),   # ring mcp
        (0.54, 0.50, 0.0),
        (0.54, 0.46, 0.0),
        (0.54, 0.42, 0.0),   # ring tip
        (0.58, 0.57, 0.0),   # pinky mcp
        (0.58, 0.53, 0.0),
        (0.58, 0.49, 0.0),
        (0.58, 0.46, 0.0),   # pinky tip
    ],
    dtype=np.float64,
)


def open_hand(offset=(0.0, 0.0)) -> np.ndarray:
    hand = _OPEN_HAND.copy()
    hand[:, 0] += offset[0]
    hand[:, 1] += offset[1]
    return hand


def pinch_hand(distance: float = 0.02, offset=(0.0, 0.0)) -> np.ndarray:
    """Thumb tip *distance* to the right of the index tip.

    The pinky is folded toward the wrist so the hand is not also an open palm.
    """
    hand = open_hand(offset)
    hand[PINKY_TIP] = hand[WRIST] + np.array([0.05, -0.06, 0.0])
    hand[THUMB_TIP] = hand[INDEX_TIP] + np.array([distance, 0.0, 0.0])
    return hand


def fist_hand(curl: float = 0.3, offset=(0.0, 0.0)) -> np.ndarray:
    """Every finger tip *curl* palm widths from its MCP, folded toward the wrist.

    The thumb tip lies across the palm, halfway from the wrist to the index
    MCP, so the fist never also reads as an open palm.
    """
    hand = open_hand(offset)
    span = math.hypot(*(hand[INDEX_MCP, :2] - hand[PINKY_MCP, :2]))
    for tip, mcp in CURL_PAIRS:
        toward_wrist = hand[WRIST] - hand[mcp]
        toward_wrist /= np.linalg.norm(toward_wrist)
        hand[tip] = hand[mcp] + curl * span * toward_wrist
    hand[THUMB_TIP] = (hand[WRIST] + hand[INDEX_MCP]) / 2.0
    return hand


def pointing_hand(offset=(0.0, 0.0)) -> np.ndarray:
    hand = open_hand(offset)
    hand[MIDDLE_TIP] = hand[WRIST] + np.array([0.00, -0.08, 0.0])
    hand[RING_TIP] = hand[WRIST] + np.array([0.03, -0.06, 0.0])
    hand[PINKY_TIP] = hand[WRIST] + np.array([0.05, -0.04, 0.0])
    return hand


def rotate_in_plane(hand: np.ndarray, degrees: float) -> np.ndarray:
    """Rotate a hand about its wrist in the image plane (changes roll only)."""
    theta = math.radians(degrees)
    c, s = math.cos(theta), math.sin(theta)
    out = hand.copy()
    rel = hand[:, :2] - hand[WRIST, :2]
    out[:, 0] = hand[WRIST, 0] + rel[:, 0] * c - rel[:, 1] * s
    out[:, 1] = hand[WRIST, 1] + rel[:, 0] * s + rel[:, 1] * c
    return out


def scale_about(hand: np.ndarray, factor: float, center) -> np.ndarray:
    out = hand.copy()
    out[:, :2] = (hand[:, :2] - np.asarray(center)) * factor + np.asarray(center)
    return out


def frame(*hands: np.ndarray, t: float = 0.0) -> HandFrame:
    return HandFrame(hands=tuple(hands), timestamp=t)


@pytest.fixture
def config() -> GestureConfig:
    return GestureConfig()


@pytest.fixture
def scene() -> Scene:
    root = SceneNode(name="model_root", node_id="root")
    root.add(SceneNode(name="model", node_id="model", bounds=((-0.5, -0.5, -0.5), (0.5, 0.5, 0.5))))
    return Scene(root=root)
