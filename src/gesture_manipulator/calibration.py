"""
Pinch threshold calibration.

While active, the calibrator records every pinch distance it is fed.  The
user pinches and releases a few times; on :meth:`PinchCalibrator.finish`
the grab threshold is placed 25% of the way into the observed range and
the release threshold a further 20% of the range (at least 0.01) above it.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace

from gesture_manipulator.config import GestureConfig

logger = logging.getLogger("gesture.calibration")

GRAB_FRACTION = 0.25
RELEASE_FRACTION = 0.2
MIN_HYSTERESIS = 0.01


class PinchCalibrator:
    def __init__(self) -> None:
        self.active = False
        self.min_distance = math.inf
        self.max_distance = 0.0

    def start(self) -> None:
        self.active = True
        self.min_distance = math.inf
        self.max_distance = 0.0
        logger.info("Pinch calibration started: pinch and release a few times")

    def sample(self, distance: float) -> None:
        if not self.active:
            return
        self.min_distance = min(self.min_distance, distance)
        self.max_distance = max(self.max_distance, distance)

    def finish(self, config: GestureConfig) -> GestureConfig:
        """Stop sampling and return *config* with derived thresholds.

        With no usable range the config is returned unchanged.
        """
        self.active = False
        if not math.isfinite(self.min_distance) or self.max_distance <= self.min_distance:
            logger.warning("Pinch calibration collected no usable range; thresholds unchanged")
            return config

        span = self.max_distance - self.min_distance
        grab = self.min_distance + span * GRAB_FRACTION
        release = grab + max(MIN_HYSTERESIS, span * RELEASE_FRACTION)
        t_grab = max(0.005, min(0.12, grab))
        t_release = max(t_grab + 0.005, min(0.15, release))

        logger.info(
            "Pinch calibration: min=%.3f max=%.3f -> t_grab=%.3f t_release=%.3f",
            self.min_distance, self.max_distance, t_grab, t_release,
        )
        return replace(config, t_grab=t_grab, t_release=t_release)
