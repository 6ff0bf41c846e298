"""
MediaPipe hand landmarker wrapper (Tasks API, mediapipe >= 0.10).

Accepts a BGR frame from OpenCV, runs two-hand landmark detection in VIDEO
mode and returns a :class:`HandFrame` for the engine, together with the raw
landmark lists for drawing.
"""

from __future__ import annotations

import os
import time
from dataclasses import dataclass, field

import mediapipe as mp
import numpy as np

from gesture_manipulator.config import (
    MP_MAX_NUM_HANDS,
    MP_MIN_DETECTION_CONFIDENCE,
    MP_MIN_TRACKING_CONFIDENCE,
)
from gesture_manipulator.landmarks import HandFrame

# Model file next to this module unless HAND_MODEL_PATH points elsewhere.
_MODEL_PATH = os.environ.get(
    "HAND_MODEL_PATH",
    os.path.join(os.path.dirname(__file__), "hand_landmarker.task"),
)

BaseOptions = mp.tasks.BaseOptions
HandLandmarker = mp.tasks.vision.HandLandmarker
HandLandmarkerOptions = mp.tasks.vision.HandLandmarkerOptions
RunningMode = mp.tasks.vision.RunningMode


@dataclass
class TrackingResult:
    """One detection pass."""

    frame: HandFrame

    # Raw list[NormalizedLandmark] per hand, in the same slot order.
    mp_landmarks: list = field(default_factory=list)

    # Handedness label ("Left" or "Right") per hand.
    handedness: list[str] = field(default_factory=list)


class HandTracker:
    """Thin wrapper around MediaPipe HandLandmarker (Tasks API)."""

    def __init__(self, model_path: str = _MODEL_PATH) -> None:
        options = HandLandmarkerOptions(
            base_options=BaseOptions(model_asset_path=model_path),
            num_hands=MP_MAX_NUM_HANDS,
            min_hand_detection_confidence=MP_MIN_DETECTION_CONFIDENCE,
            min_tracking_confidence=MP_MIN_TRACKING_CONFIDENCE,
            running_mode=RunningMode.VIDEO,
        )
        self._landmarker = HandLandmarker.create_from_options(options)
        self._last_ts_ms: int = 0  # VIDEO mode needs strictly increasing timestamps

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def process(self, bgr_frame: np.ndarray) -> TrackingResult:
        """Run detection on a BGR frame; slot order is MediaPipe's."""
        rgb = bgr_frame[:, :, ::-1].copy()
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb)

        now = time.monotonic()
        ts_ms = max(int(now * 1000), self._last_ts_ms + 1)
        self._last_ts_ms = ts_ms
        result = self._landmarker.detect_for_video(mp_image, ts_ms)

        hands = list(result.hand_landmarks or [])
        handedness = [h[0].category_name for h in (result.handedness or [])]
        return TrackingResult(
            frame=HandFrame.from_hands(hands, timestamp=now),
            mp_landmarks=hands,
            handedness=handedness,
        )

    def close(self) -> None:
        """Release MediaPipe resources."""
        self._landmarker.close()
