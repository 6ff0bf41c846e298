"""Tests for pinch threshold calibration."""

from __future__ import annotations

import pytest

from gesture_manipulator.calibration import PinchCalibrator
from gesture_manipulator.config import GestureConfig


def _calibrate(samples):
    calibrator = PinchCalibrator()
    calibrator.start()
    for d in samples:
        calibrator.sample(d)
    return calibrator.finish(GestureConfig())


def test_thresholds_from_observed_range():
    config = _calibrate([0.10, 0.02, 0.06, 0.08])
    assert config.t_grab == pytest.approx(0.04)
    assert config.t_release == pytest.approx(0.056)


def test_narrow_range_uses_minimum_hysteresis():
    config = _calibrate([0.020, 0.030])
    assert config.t_grab == pytest.approx(0.0225)
    assert config.t_release == pytest.approx(0.0325)


def test_results_clamped():
    config = _calibrate([0.3, 0.9])
    assert config.t_grab == 0.12
    assert config.t_release == 0.15
    assert config.t_release > config.t_grab


def test_no_range_leaves_config_unchanged():
    base = GestureConfig()
    calibrator = PinchCalibrator()
    calibrator.start()
    calibrator.sample(0.05)
    assert calibrator.finish(base) is base
    assert not calibrator.active


def test_samples_ignored_while_inactive():
    calibrator = PinchCalibrator()
    calibrator.sample(0.01)
    calibrator.sample(0.2)
    assert calibrator.finish(GestureConfig()) == GestureConfig()
