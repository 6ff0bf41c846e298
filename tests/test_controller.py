"""Tests for the per-mode handlers in isolation."""

from __future__ import annotations

import random
from dataclasses import replace

import pytest

from conftest import fist_hand, frame, pinch_hand
from gesture_manipulator.config import FILTER_ADAPTIVE
from gesture_manipulator.controller import ObjectTransform, TransformController
from gesture_manipulator.state import GestureMode, GestureState

DT = 1 / 24


def _controller(scene, config):
    return TransformController(scene, config, GestureState())


def test_every_mode_has_a_handler(scene, config):
    ctrl = _controller(scene, config)
    assert set(ctrl._handlers) == set(GestureMode)


@pytest.mark.parametrize("mode", [GestureMode.ROTATE, GestureMode.SCALE])
def test_two_hand_modes_skip_with_one_hand(scene, config, mode):
    ctrl = _controller(scene, config)
    assert ctrl.apply(mode, frame(pinch_hand()), DT) is None
    assert scene.root.scale == 1.0
    assert scene.root.rotation.tolist() == [0.0, 0.0, 0.0]


@pytest.mark.parametrize("mode", [GestureMode.MOVE, GestureMode.FIST_ROTATION])
def test_one_hand_modes_skip_without_hands(scene, config, mode):
    ctrl = _controller(scene, config)
    assert ctrl.apply(mode, frame(), DT) is None


@pytest.mark.parametrize("mode", [GestureMode.NONE, GestureMode.CAMERA, GestureMode.POINT])
def test_passive_modes_touch_nothing(scene, config, mode):
    ctrl = _controller(scene, config)
    assert ctrl.apply(mode, frame(fist_hand()), DT) is None


def test_scale_stays_inside_bounds_for_extreme_ratios(scene, config):
    cfg = replace(config, scale_min=0.5, scale_max=3.0)
    ctrl = _controller(scene, cfg)
    hands = frame(pinch_hand(offset=(-0.25, 0.0)), pinch_hand(offset=(0.25, 0.0)))

    rng = random.Random(7)
    seen = []
    for _ in range(300):
        # Baseline anywhere from 100x smaller to 100x larger than the
        # current distance.
        ctrl.state.pinch_scale_baseline = 0.5 * 10 ** rng.uniform(-2, 2)
        ctrl.apply(GestureMode.SCALE, hands, DT)
        seen.append(scene.root.scale)

    assert min(seen) >= 0.5
    assert max(seen) <= 3.0


def test_scale_saturates_at_upper_bound(scene, config):
    cfg = replace(config, scale_max=3.0)
    ctrl = _controller(scene, cfg)
    hands = frame(pinch_hand(offset=(-0.25, 0.0)), pinch_hand(offset=(0.25, 0.0)))
    for _ in range(200):
        ctrl.state.pinch_scale_baseline = 0.001
        ctrl.apply(GestureMode.SCALE, hands, DT)
        assert scene.root.scale <= 3.0
    assert scene.root.scale == pytest.approx(3.0, abs=1e-6)


def test_degenerate_scale_baseline_is_no_motion(scene, config):
    ctrl = _controller(scene, config)
    ctrl.state.pinch_scale_baseline = 0.0
    hands = frame(pinch_hand(offset=(-0.25, 0.0)), pinch_hand(offset=(0.25, 0.0)))
    assert ctrl.apply(GestureMode.SCALE, hands, DT) is None
    assert scene.root.scale == 1.0
    assert ctrl.state.pinch_scale_baseline == pytest.approx(0.5)


def test_fist_rotation_first_tick_only_sets_baseline(scene, config):
    ctrl = _controller(scene, config)
    scene.root.rotation[1] = 0.3
    result = ctrl.apply(GestureMode.FIST_ROTATION, frame(fist_hand()), DT)
    baseline = ctrl.state.rotation_baseline
    assert baseline.is_set
    assert baseline.model_yaw == pytest.approx(0.3)
    assert result.yaw == pytest.approx(0.3)
    assert ctrl.state.selected_axis is None


def test_transform_to_dict():
    t = ObjectTransform(position=[0.123456, 0.0, -1.0], yaw=0.5, roll=-0.25, scale=1.5,
                        mode=GestureMode.MOVE)
    assert t.to_dict() == {
        "position": [0.1235, 0.0, -1.0],
        "yaw": 0.5,
        "roll": -0.25,
        "scale": 1.5,
        "mode": "move",
    }


def test_transform_compares_by_identity():
    t = ObjectTransform(position=[1.0, 2.0, 3.0], mode=GestureMode.MOVE)
    other = ObjectTransform(position=[1.0, 2.0, 3.0], mode=GestureMode.MOVE)
    assert t == t
    assert t != other
    assert len({t, other}) == 2


@pytest.mark.parametrize(
    "changes",
    [{"min_cutoff": 2.0}, {"beta": 0.05}, {"d_cutoff": 3.0}],
)
def test_new_adaptive_parameters_discard_filters(scene, config, changes):
    adaptive = replace(config, filter=FILTER_ADAPTIVE)
    ctrl = _controller(scene, adaptive)
    ctrl.apply(GestureMode.MOVE, frame(pinch_hand()), DT)
    assert ctrl._pos_filters is not None

    ctrl.set_config(replace(adaptive, **changes))
    assert ctrl._pos_filters is None


def test_unrelated_config_change_keeps_filters(scene, config):
    adaptive = replace(config, filter=FILTER_ADAPTIVE)
    ctrl = _controller(scene, adaptive)
    ctrl.apply(GestureMode.MOVE, frame(pinch_hand()), DT)
    filters = ctrl._pos_filters

    ctrl.set_config(replace(adaptive, snap_step_deg=30.0))
    assert ctrl._pos_filters is filters
