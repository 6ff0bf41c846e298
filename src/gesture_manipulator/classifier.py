"""
Gesture classifier.

Maps one :class:`HandFrame` to a single manipulation mode.

Per-hand poses
--------------
* **Pinch**: thumb tip close to index tip.  Uses grab/release hysteresis
  (see :class:`PinchLatch`): a released hand only grabs below ``t_grab``, a
  grabbing hand only releases above ``t_release``.
* **Fist**: the four finger tips are close to their MCP joints relative to
  the palm width (index MCP to pinky MCP), which makes the test independent
  of hand size and camera distance.
* **Pointing**: index tip far from the wrist, the other three tips close.
* **Open palm**: all five tips far from the wrist.

Decision order
--------------
Two hands are checked first (scale, camera, rotate), then the first hand on
its own with priority fist > pinch > pointing > open palm, so a closing fist
is never read as a weak pinch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from gesture_manipulator.config import (
    CURL_PAIRS,
    FINGERTIPS,
    INDEX_TIP,
    MIDDLE_TIP,
    MIN_DENOMINATOR,
    PINKY_TIP,
    RING_TIP,
    THUMB_TIP,
    WRIST,
    GestureConfig,
)
from gesture_manipulator.landmarks import (
    HandFrame,
    fingertip_to_wrist,
    hand_distance,
    hand_span,
    pinch_distance,
    planar_dist,
)
from gesture_manipulator.state import GestureMode

logger = logging.getLogger("gesture.classifier")


# ---------------------------------------------------------------------------
# Per-hand predicates
# ---------------------------------------------------------------------------


def update_pinch(grabbing: bool, distance: float, config: GestureConfig) -> bool:
    """Next pinch state for a hand given its previous state and distance."""
    if grabbing:
        return distance < config.t_release
    return distance < config.t_grab


def curl_ratios(hand: np.ndarray) -> Optional[list[float]]:
    """Tip-to-MCP distance over palm width for index, middle, ring, pinky."""
    span = hand_span(hand)
    if span <= MIN_DENOMINATOR:
        return None
    return [planar_dist(hand[tip], hand[mcp]) / span for tip, mcp in CURL_PAIRS]


def is_fist(hand: np.ndarray, config: GestureConfig) -> bool:
    ratios = curl_ratios(hand)
    if ratios is None:
        return False
    mean_curl = sum(ratios) / len(ratios)
    thumb_ratio = planar_dist(hand[THUMB_TIP], hand[WRIST]) / hand_span(hand)

    all_curled = all(r < config.fist_all_curl_max for r in ratios)
    overall_curled = mean_curl < config.fist_mean_curl_max
    thumb_close = thumb_ratio < config.fist_thumb_close_ratio

    return (all_curled and overall_curled) or (overall_curled and thumb_close)


def is_pointing(hand: np.ndarray, config: GestureConfig) -> bool:
    return (
        fingertip_to_wrist(hand, INDEX_TIP) > config.point_index_min
        and fingertip_to_wrist(hand, MIDDLE_TIP) < config.point_middle_max
        and fingertip_to_wrist(hand, RING_TIP) < config.point_ring_max
        and fingertip_to_wrist(hand, PINKY_TIP) < config.point_pinky_max
    )


def is_open_palm(hand: np.ndarray, config: GestureConfig) -> bool:
    return all(fingertip_to_wrist(hand, tip) > config.open_palm_min for tip in FINGERTIPS)


@dataclass
class HandPose:
    """Boolean pose predicates for one hand."""

    pinching: bool
    fist: bool
    pointing: bool
    open_palm: bool

    def as_dict(self) -> dict[str, bool]:
        return {
            "pinching": self.pinching,
            "fist": self.fist,
            "pointing": self.pointing,
            "open_palm": self.open_palm,
        }


def describe_hand(
    hand: np.ndarray,
    config: GestureConfig,
    pinching: Optional[bool] = None,
) -> HandPose:
    """Evaluate every pose predicate for *hand*.

    *pinching* is the latched pinch state; without one, the raw
    ``distance < t_grab`` test is used.
    """
    if pinching is None:
        pinching = pinch_distance(hand) < config.t_grab
    return HandPose(
        pinching=pinching,
        fist=is_fist(hand, config),
        pointing=is_pointing(hand, config),
        open_palm=is_open_palm(hand, config),
    )


# ---------------------------------------------------------------------------
# Pinch hysteresis
# ---------------------------------------------------------------------------


class PinchLatch:
    """Sticky grab flags for the two hand slots.

    A slot whose hand disappears is released in the same tick.
    """

    def __init__(self) -> None:
        self._grabbing: list[bool] = [False, False]

    @property
    def flags(self) -> tuple[bool, bool]:
        return self._grabbing[0], self._grabbing[1]

    def update(self, frame: HandFrame, config: GestureConfig) -> tuple[bool, bool]:
        for slot in (0, 1):
            hand = frame.hand(slot)
            if hand is None:
                self._grabbing[slot] = False
            else:
                self._grabbing[slot] = update_pinch(
                    self._grabbing[slot], pinch_distance(hand), config
                )
        return self.flags

    def reset(self) -> None:
        self._grabbing = [False, False]


# ---------------------------------------------------------------------------
# Mode decision
# ---------------------------------------------------------------------------


def classify(
    frame: HandFrame,
    config: GestureConfig,
    pinching: Optional[tuple[bool, bool]] = None,
) -> GestureMode:
    """Return the manipulation mode for *frame*.

    Pure function of the frame, the config and the latched pinch flags.
    """
    h0 = frame.hand(0)
    h1 = frame.hand(1)
    if h0 is None:
        return GestureMode.NONE

    p0 = pinching[0] if pinching is not None else None
    pose0 = describe_hand(h0, config, p0)

    if h1 is not None:
        p1 = pinching[1] if pinching is not None else None
        pose1 = describe_hand(h1, config, p1)
        both_pinch = pose0.pinching and pose1.pinching
        both_open = pose0.open_palm and pose1.open_palm

        if both_pinch and hand_distance(h0, h1) > config.two_hand_scale_distance:
            return GestureMode.SCALE
        if both_open:
            return GestureMode.CAMERA
        if both_pinch:
            return GestureMode.ROTATE

    logger.debug("Hand 0 pose: %s", pose0.as_dict())

    if pose0.fist:
        return GestureMode.FIST_ROTATION
    if pose0.pinching:
        return GestureMode.MOVE
    if pose0.pointing:
        return GestureMode.POINT
    if pose0.open_palm:
        return GestureMode.CAMERA
    return GestureMode.NONE
