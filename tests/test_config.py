"""Tests for GestureConfig loading and clamping."""

from __future__ import annotations

import json

import pytest

from gesture_manipulator.config import FILTER_ADAPTIVE, FILTER_EMA, GestureConfig, load_config
from gesture_manipulator.errors import ConfigError


def test_defaults_are_already_in_range():
    config = GestureConfig()
    assert config.clamped() == config
    assert config.t_release > config.t_grab


def test_release_forced_above_grab():
    config = GestureConfig(t_grab=0.05, t_release=0.03).clamped()
    assert config.t_release == pytest.approx(0.055)
    assert config.t_release > config.t_grab


def test_thresholds_clamped_to_absolute_bounds():
    config = GestureConfig(t_grab=0.5, t_release=0.9).clamped()
    assert config.t_grab == 0.12
    assert config.t_release == 0.15


def test_from_dict_accepts_camel_case_and_ignores_unknown():
    config = GestureConfig.from_dict(
        {"T_grab": 0.03, "posAlpha": 0.4, "snapStepDeg": 30, "theme": "dark"}
    )
    assert config.t_grab == 0.03
    assert config.pos_alpha == 0.4
    assert config.snap_step_deg == 30


def test_oneeuro_alias_maps_to_adaptive():
    assert GestureConfig.from_dict({"filter": "oneeuro"}).filter == FILTER_ADAPTIVE
    assert GestureConfig.from_dict({"filter": "ema"}).filter == FILTER_EMA


def test_unknown_filter_rejected():
    with pytest.raises(ConfigError):
        GestureConfig.from_dict({"filter": "kalman"})


def test_wrong_value_type_rejected():
    with pytest.raises(ConfigError):
        GestureConfig.from_dict({"t_grab": "tight"})


def test_from_json_requires_object():
    with pytest.raises(ConfigError):
        GestureConfig.from_json("[1, 2, 3]")
    with pytest.raises(ConfigError):
        GestureConfig.from_json("{not json")


def test_round_trip_through_file(tmp_path):
    path = tmp_path / "gesture.json"
    original = GestureConfig(t_grab=0.02, t_release=0.04, filter=FILTER_ADAPTIVE, beta=0.5)
    path.write_text(json.dumps(original.to_dict()), encoding="utf-8")
    assert GestureConfig.from_file(path) == original


def test_missing_file_is_config_error(tmp_path):
    with pytest.raises(ConfigError):
        GestureConfig.from_file(tmp_path / "missing.json")


def test_load_config_defaults_without_env(monkeypatch):
    monkeypatch.setattr("gesture_manipulator.config.GESTURE_CONFIG_PATH", None)
    assert load_config() == GestureConfig()


def test_load_config_reads_env_path(monkeypatch, tmp_path):
    path = tmp_path / "gesture.json"
    path.write_text(json.dumps({"inferFps": 30}), encoding="utf-8")
    monkeypatch.setattr("gesture_manipulator.config.GESTURE_CONFIG_PATH", str(path))
    assert load_config().infer_fps == 30
