"""
Configuration for the hand-gesture manipulation engine.

Landmark indices, default thresholds, capture settings and overlay colours
live here so they can be adjusted in one place without touching the
detection or transform logic.

Runtime-tunable values are grouped in :class:`GestureConfig`.  A config file
(JSON) can be loaded with :meth:`GestureConfig.from_file`; every loaded value
is clamped into a safe range rather than rejected.
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path

from gesture_manipulator.errors import ConfigError

# ---------------------------------------------------------------------------
# MediaPipe landmark indices (for readability)
# ---------------------------------------------------------------------------
WRIST = 0
THUMB_CMC = 1
THUMB_MCP = 2
THUMB_IP = 3
THUMB_TIP = 4
INDEX_MCP = 5
INDEX_PIP = 6
INDEX_DIP = 7
INDEX_TIP = 8
MIDDLE_MCP = 9
MIDDLE_PIP = 10
MIDDLE_DIP = 11
MIDDLE_TIP = 12
RING_MCP = 13
RING_PIP = 14
RING_DIP = 15
RING_TIP = 16
PINKY_MCP = 17
PINKY_PIP = 18
PINKY_DIP = 19
PINKY_TIP = 20

NUM_LANDMARKS = 21
FINGERTIPS = (THUMB_TIP, INDEX_TIP, MIDDLE_TIP, RING_TIP, PINKY_TIP)

# (tip, MCP) pairs used for the fist curl ratios, index through pinky.
CURL_PAIRS = (
    (INDEX_TIP, INDEX_MCP),
    (MIDDLE_TIP, MIDDLE_MCP),
    (RING_TIP, RING_MCP),
    (PINKY_TIP, PINKY_MCP),
)

# ---------------------------------------------------------------------------
# Engine bookkeeping
# ---------------------------------------------------------------------------
# Number of recent frames kept for stability heuristics.
HAND_HISTORY_SIZE = 5

# Smallest denominator accepted before a division is treated as "no signal".
MIN_DENOMINATOR = 1e-6

# Filter family names.  "oneeuro" is the name used by older settings files.
FILTER_EMA = "ema"
FILTER_ADAPTIVE = "adaptive"
_FILTER_ALIASES = {"oneeuro": FILTER_ADAPTIVE, "one_euro": FILTER_ADAPTIVE}

# ---------------------------------------------------------------------------
# MediaPipe Hands configuration
# ---------------------------------------------------------------------------
MP_MAX_NUM_HANDS = 2
MP_MIN_DETECTION_CONFIDENCE = 0.5
MP_MIN_TRACKING_CONFIDENCE = 0.5

# ---------------------------------------------------------------------------
# Webcam / inference loop
# ---------------------------------------------------------------------------
CAMERA_INDEX = 0
CAMERA_WIDTH = 1280
CAMERA_HEIGHT = 720
# Optional stream URL or device path, overrides CAMERA_INDEX.
CAMERA_SRC = os.environ.get("CAMERA_SRC")

# Optional JSON file with GestureConfig overrides.
GESTURE_CONFIG_PATH = os.environ.get("GESTURE_CONFIG")

# Relay server that forwards transforms to the viewer.
SERVER_URL = os.environ.get("GESTURE_SERVER_URL", "http://localhost:8000")

# ---------------------------------------------------------------------------
# Overlay / visualisation
# ---------------------------------------------------------------------------
OVERLAY_FONT_SCALE = 1.0
OVERLAY_THICKNESS = 2
OVERLAY_MODE_COLOR = (0, 255, 0)          # green for the active mode
OVERLAY_INFO_COLOR = (255, 200, 0)        # cyan-ish for transform readout
OVERLAY_AXIS_COLORS = {
    "yaw": (0, 200, 255),
    "roll": (255, 120, 0),
}


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


@dataclass
class GestureConfig:
    """Tunable thresholds for classification, filtering and rotation control.

    Defaults reproduce the values the viewer shipped with.  Field names are
    snake_case; :meth:`from_dict` also accepts the camelCase keys used by the
    viewer's settings store (``T_grab``, ``posAlpha`` ...).
    """

    # Pinch hysteresis (normalised thumb-index distance).
    t_grab: float = 0.035
    t_release: float = 0.045

    # Smoothing.
    filter: str = FILTER_EMA
    pos_alpha: float = 0.5
    rot_alpha: float = 0.7
    min_cutoff: float = 1.0
    beta: float = 0.3
    d_cutoff: float = 1.0

    # Fist rotation: deadzones, axis lock, snap and gain curve (degrees).
    yaw_deadzone_deg: float = 2.0
    roll_deadzone_deg: float = 3.0
    axis_hysteresis_deg: float = 10.0
    snap_step_deg: float = 15.0
    snap_window_deg: float = 2.0
    gain_low_deg: float = 10.0
    gain_high_deg: float = 60.0
    gain_low_mul: float = 0.6
    gain_high_mul: float = 1.2

    # Fist detection (ratios of the hand span).
    fist_all_curl_max: float = 0.55
    fist_mean_curl_max: float = 0.45
    fist_thumb_close_ratio: float = 0.9

    # Pointing / open palm (absolute normalised fingertip-to-wrist distance).
    point_index_min: float = 0.15
    point_middle_max: float = 0.12
    point_ring_max: float = 0.10
    point_pinky_max: float = 0.08
    open_palm_min: float = 0.12

    # Two hands pinching farther apart than this scale instead of rotate.
    two_hand_scale_distance: float = 0.3

    # Hand-to-camera distance estimate.
    palm_width_m: float = 0.09
    fov_factor: float = 0.8
    hand_distance_min: float = 0.15
    hand_distance_max: float = 3.0

    # Scale gestures.
    scale_min: float = 0.01
    scale_max: float = 50.0
    move_scale_sensitivity: float = 1.2
    two_hand_scale_sensitivity: float = 0.6

    # Inference rate of the capture loop.
    infer_fps: int = 24

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def clamped(self) -> GestureConfig:
        """Return a copy with every value forced into its safe range.

        ``t_release`` always ends up strictly above ``t_grab``.
        """
        family = _FILTER_ALIASES.get(self.filter, self.filter)
        if family not in (FILTER_EMA, FILTER_ADAPTIVE):
            raise ConfigError(f"Unknown filter family: {self.filter!r}")

        t_grab = _clamp(self.t_grab, 0.005, 0.12)
        t_release = _clamp(self.t_release, t_grab + 0.005, 0.15)

        gain_low_deg = max(0.0, self.gain_low_deg)
        gain_high_deg = max(gain_low_deg, self.gain_high_deg)
        scale_min = max(1e-4, self.scale_min)
        hand_distance_min = max(0.01, self.hand_distance_min)

        return replace(
            self,
            t_grab=t_grab,
            t_release=t_release,
            filter=family,
            pos_alpha=_clamp(self.pos_alpha, 0.01, 1.0),
            rot_alpha=_clamp(self.rot_alpha, 0.01, 1.0),
            min_cutoff=max(1e-3, self.min_cutoff),
            beta=max(0.0, self.beta),
            d_cutoff=max(1e-3, self.d_cutoff),
            yaw_deadzone_deg=max(0.0, self.yaw_deadzone_deg),
            roll_deadzone_deg=max(0.0, self.roll_deadzone_deg),
            axis_hysteresis_deg=max(0.0, self.axis_hysteresis_deg),
            snap_step_deg=max(0.0, self.snap_step_deg),
            snap_window_deg=max(0.0, self.snap_window_deg),
            gain_low_deg=gain_low_deg,
            gain_high_deg=gain_high_deg,
            gain_low_mul=max(0.0, self.gain_low_mul),
            gain_high_mul=max(0.0, self.gain_high_mul),
            scale_min=scale_min,
            scale_max=max(scale_min, self.scale_max),
            hand_distance_min=hand_distance_min,
            hand_distance_max=max(hand_distance_min, self.hand_distance_max),
            infer_fps=int(_clamp(int(self.infer_fps), 1, 120)),
        )

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> GestureConfig:
        """Build a clamped config from *data*, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in data.items():
            name = _CAMEL_KEYS.get(key, key)
            if name in known:
                values[name] = value
        try:
            config = cls(**values)
        except TypeError as exc:
            raise ConfigError(f"Invalid gesture config: {exc}") from exc
        try:
            return config.clamped()
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid gesture config value: {exc}") from exc

    @classmethod
    def from_json(cls, json_str: str) -> GestureConfig:
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Gesture config is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError("Gesture config must be a JSON object")
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, path: Path) -> GestureConfig:
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Cannot read gesture config {path}: {exc}") from exc
        return cls.from_json(text)


# camelCase keys written by the viewer's settings store.
_CAMEL_KEYS = {
    "T_grab": "t_grab",
    "T_release": "t_release",
    "posAlpha": "pos_alpha",
    "rotAlpha": "rot_alpha",
    "minCutoff": "min_cutoff",
    "dCutoff": "d_cutoff",
    "yawDeadzoneDeg": "yaw_deadzone_deg",
    "rollDeadzoneDeg": "roll_deadzone_deg",
    "axisHysteresisDeg": "axis_hysteresis_deg",
    "snapStepDeg": "snap_step_deg",
    "snapWindowDeg": "snap_window_deg",
    "gainLowDeg": "gain_low_deg",
    "gainHighDeg": "gain_high_deg",
    "gainLowMul": "gain_low_mul",
    "gainHighMul": "gain_high_mul",
    "inferFps": "infer_fps",
}


def load_config() -> GestureConfig:
    """Load the config named by ``GESTURE_CONFIG``, or the defaults."""
    if GESTURE_CONFIG_PATH:
        return GestureConfig.from_file(Path(GESTURE_CONFIG_PATH))
    return GestureConfig()
