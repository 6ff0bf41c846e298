"""
Axis-locked rotation for the fist gesture.

A fist twisted in front of the camera produces a noisy two-axis signal
(palm yaw and wrist roll) even when the user means to turn about one axis.
The helpers here turn it into a single-axis control:

1. **Deadzone** -- per-axis deltas at or below the deadzone count as zero.
2. **Gain curve** -- small deltas are damped, large ones amplified, with a
   linear ramp between the two break points.
3. **Axis lock** -- the axis whose adjusted delta leads by more than the
   hysteresis margin wins; a locked axis is only given up when the other one
   leads by the same margin.
4. **Snap** -- a target close to a multiple of the snap step lands exactly on
   it.

All angles handled here are in degrees.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

from gesture_manipulator.config import GestureConfig
from gesture_manipulator.state import GestureState, RotationAxis

logger = logging.getLogger("gesture.axis_lock")


def apply_deadzone(delta_deg: float, deadzone_deg: float) -> float:
    if abs(delta_deg) <= deadzone_deg:
        return 0.0
    return delta_deg


def gain_multiplier(magnitude_deg: float, config: GestureConfig) -> float:
    """Three-segment gain for a delta of *magnitude_deg* (non-negative)."""
    low, high = config.gain_low_deg, config.gain_high_deg
    if magnitude_deg <= low:
        return config.gain_low_mul
    if magnitude_deg >= high:
        return config.gain_high_mul
    t = (magnitude_deg - low) / (high - low)
    return config.gain_low_mul + (config.gain_high_mul - config.gain_low_mul) * t


def apply_gain(delta_deg: float, config: GestureConfig) -> float:
    """Scale *delta_deg* by the gain curve, keeping its sign."""
    if delta_deg == 0.0:
        return 0.0
    return delta_deg * gain_multiplier(abs(delta_deg), config)


def snap_angle(angle_deg: float, step_deg: float, window_deg: float) -> float:
    """Snap to the nearest multiple of *step_deg* when within *window_deg*."""
    if step_deg <= 0:
        return angle_deg
    nearest = math.floor(angle_deg / step_deg + 0.5) * step_deg
    if abs(angle_deg - nearest) <= window_deg:
        return nearest
    return angle_deg


def select_axis(
    current: Optional[RotationAxis],
    yaw_adj: float,
    roll_adj: float,
    hysteresis_deg: float,
) -> Optional[RotationAxis]:
    """Return the axis that holds the lock after this tick.

    From the unlocked state an axis wins when it leads the other by more
    than the hysteresis, or when the other axis is zero (deadzoned) and it
    is not.  A held lock only moves when the other axis leads by more than
    the hysteresis.
    """
    yaw_mag = abs(yaw_adj)
    roll_mag = abs(roll_adj)

    if current is None:
        if yaw_adj != 0.0 and (roll_adj == 0.0 or yaw_mag > roll_mag + hysteresis_deg):
            return RotationAxis.YAW
        if roll_adj != 0.0 and (yaw_adj == 0.0 or roll_mag > yaw_mag + hysteresis_deg):
            return RotationAxis.ROLL
        return None

    if current == RotationAxis.YAW and roll_mag > yaw_mag + hysteresis_deg:
        return RotationAxis.ROLL
    if current == RotationAxis.ROLL and yaw_mag > roll_mag + hysteresis_deg:
        return RotationAxis.YAW
    return current


@dataclass
class AxisLockStep:
    """Outcome of one axis-lock update."""

    yaw_adj: float
    roll_adj: float
    axis: Optional[RotationAxis]
    switched: bool = False


class AxisLock:
    """Applies deadzone, gain and the lock contest, writing the result to state."""

    def __init__(self, config: GestureConfig) -> None:
        self.config = config

    def update(
        self,
        state: GestureState,
        yaw_delta_deg: float,
        roll_delta_deg: float,
        now: float,
    ) -> AxisLockStep:
        cfg = self.config
        yaw_adj = apply_gain(apply_deadzone(yaw_delta_deg, cfg.yaw_deadzone_deg), cfg)
        roll_adj = apply_gain(apply_deadzone(roll_delta_deg, cfg.roll_deadzone_deg), cfg)

        previous = state.selected_axis
        axis = select_axis(previous, yaw_adj, roll_adj, cfg.axis_hysteresis_deg)
        switched = previous is not None and axis != previous

        if axis != previous:
            state.selected_axis = axis
            if switched:
                state.last_axis_switch_at = now
            logger.debug(
                "Axis lock %s -> %s (yaw=%.1f roll=%.1f)",
                previous.value if previous else "unlocked",
                axis.value if axis else "unlocked",
                yaw_adj,
                roll_adj,
            )

        return AxisLockStep(yaw_adj=yaw_adj, roll_adj=roll_adj, axis=axis, switched=switched)

    def targets(
        self,
        state: GestureState,
        step: AxisLockStep,
        current_yaw: float,
        current_roll: float,
    ) -> tuple[float, float]:
        """Snapped (yaw, roll) targets in radians.

        Only the locked axis moves off its current value, and only while its
        adjusted delta is non-zero.
        """
        baseline = state.rotation_baseline
        target_yaw = current_yaw
        target_roll = current_roll
        if step.axis == RotationAxis.YAW and step.yaw_adj != 0.0:
            target_yaw = baseline.model_yaw + math.radians(step.yaw_adj)
        elif step.axis == RotationAxis.ROLL and step.roll_adj != 0.0:
            target_roll = baseline.model_roll + math.radians(step.roll_adj)

        cfg = self.config
        target_yaw = math.radians(
            snap_angle(math.degrees(target_yaw), cfg.snap_step_deg, cfg.snap_window_deg)
        )
        target_roll = math.radians(
            snap_angle(math.degrees(target_roll), cfg.snap_step_deg, cfg.snap_window_deg)
        )
        return target_yaw, target_roll
