"""
Temporal smoothing primitives.

Two filter families are supported:

1. **Exponential moving average (EMA)** -- ``y_t = a*x_t + (1-a)*y_{t-1}``
   with ``y_0 = x_0``.  Cheap, fixed lag.

2. **Adaptive low-pass (One-Euro)** -- a value low-pass whose cutoff rises
   with the (itself low-passed) speed of the input.  Slow motion is smoothed
   heavily, fast motion passes with little lag.

The step functions are pure: all memory lives in an explicit
:class:`FilterState` owned by the caller.  :class:`AdaptiveFilter` bundles a
state with its parameters for the common per-channel case.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

TWO_PI = 2.0 * math.pi


def ema(prev: Optional[float], x: float, alpha: float) -> float:
    """One EMA step.  The first sample (``prev is None``) passes through."""
    if prev is None:
        return x
    return alpha * x + (1.0 - alpha) * prev


def smoothing_alpha(dt: float, cutoff: float) -> float:
    """Low-pass coefficient for a sampling interval *dt* and *cutoff* in Hz."""
    tau = 1.0 / (TWO_PI * cutoff)
    return 1.0 / (1.0 + tau / dt)


@dataclass
class FilterState:
    """Memory of one adaptive filter channel."""

    value: Optional[float] = None       # last filtered output
    last_raw: Optional[float] = None    # last raw input, for the derivative
    dx: Optional[float] = None          # last low-passed derivative

    def reset(self) -> None:
        self.value = None
        self.last_raw = None
        self.dx = None


def adaptive_step(
    state: FilterState,
    x: float,
    dt: float,
    min_cutoff: float,
    beta: float,
    d_cutoff: float,
) -> float:
    """Filter *x* through the speed-responsive low-pass, updating *state*.

    A non-positive *dt* (duplicate or out-of-order timestamp) returns *x*
    unchanged and leaves *state* untouched.
    """
    if dt <= 0:
        return x

    raw_dx = 0.0 if state.last_raw is None else (x - state.last_raw) / dt
    edx = ema(state.dx, raw_dx, smoothing_alpha(dt, d_cutoff))
    cutoff = min_cutoff + beta * abs(edx)
    y = ema(state.value, x, smoothing_alpha(dt, cutoff))

    state.dx = edx
    state.value = y
    state.last_raw = x
    return y


class AdaptiveFilter:
    """A single adaptive channel with fixed parameters."""

    def __init__(self, min_cutoff: float = 1.0, beta: float = 0.3, d_cutoff: float = 1.0) -> None:
        self.min_cutoff = min_cutoff
        self.beta = beta
        self.d_cutoff = d_cutoff
        self.state = FilterState()

    def filter(self, x: float, dt: float) -> float:
        return adaptive_step(self.state, x, dt, self.min_cutoff, self.beta, self.d_cutoff)

    def reset(self) -> None:
        self.state.reset()


# ---------------------------------------------------------------------------
# Angles
# ---------------------------------------------------------------------------


def wrap_angle(rad: float) -> float:
    """Map an angle to [-pi, pi)."""
    return (rad + math.pi) % TWO_PI - math.pi


def lerp_angle(a: float, b: float, t: float) -> float:
    """Interpolate from *a* toward *b* along the shorter arc."""
    return a + wrap_angle(b - a) * t
