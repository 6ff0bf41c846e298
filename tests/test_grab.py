"""Tests for grab-point resolution and live root anchoring."""

from __future__ import annotations

import numpy as np
import pytest

from gesture_manipulator.grab import GrabResolver
from gesture_manipulator.state import GestureState

CENTRE = np.array([0.5, 0.5])


def test_hit_records_node_and_offsets(scene):
    state = GestureState()
    resolver = GrabResolver(scene)
    assert resolver.resolve(state, CENTRE)

    assert state.has_valid_grab
    assert state.grab_node_id == "model"
    assert state.grab_local_on_node == pytest.approx([0.0, 0.0, 0.5], abs=1e-9)
    assert state.grab_offset == pytest.approx([0.0, 0.0, 0.5], abs=1e-9)
    # Hand point on the z=0 plane, hit point on the front face.
    assert state.hand_to_model_offset == pytest.approx([0.0, 0.0, 0.5], abs=1e-9)
    assert state.grab_world_pos == pytest.approx([0.0, 0.0, 0.0], abs=1e-9)
    assert state.grab_start_model_pos.tolist() == [0.0, 0.0, 0.0]


def test_miss_falls_back_to_root_offset(scene):
    scene.root.position = np.array([0.3, -0.2, 0.0])
    state = GestureState()
    resolver = GrabResolver(scene)
    assert not resolver.resolve(state, np.array([0.02, 0.02]))

    hand = scene.screen_to_world(0.02, 0.02, 0.0)
    assert not state.has_valid_grab
    assert state.grab_node_id is None
    assert state.grab_offset.tolist() == [0.0, 0.0, 0.0]
    assert state.hand_to_model_offset == pytest.approx(scene.root.position - hand)
    # The root keeps its place relative to the hand.
    assert resolver.root_position(state, hand) == pytest.approx(scene.root.position)


def test_unreachable_plane_invalidates_grab(scene):
    scene.camera.position = np.array([0.0, 0.0, -5.0])
    scene.camera.target = np.array([0.0, 0.0, -10.0])
    state = GestureState()
    state.has_valid_grab = True
    assert not GrabResolver(scene).resolve(state, CENTRE)
    assert not state.has_valid_grab


def test_root_position_keeps_grab_point_under_hand(scene):
    state = GestureState()
    resolver = GrabResolver(scene)
    resolver.resolve(state, CENTRE)

    hand = np.array([0.4, 0.1, 0.0])
    scene.root.position = resolver.root_position(state, hand)
    grabbed = scene.resolve_node("model").local_to_world(state.grab_local_on_node)
    assert grabbed == pytest.approx(hand + state.hand_to_model_offset)


def test_root_position_tracks_scale_applied_after_grab(scene):
    state = GestureState()
    resolver = GrabResolver(scene)
    resolver.resolve(state, CENTRE)
    hit = state.grab_world_pos + state.hand_to_model_offset

    scene.root.scale = 2.0
    scene.root.position = resolver.root_position(state, state.grab_world_pos)
    grabbed = scene.resolve_node("model").local_to_world(state.grab_local_on_node)
    assert grabbed == pytest.approx(hit, abs=1e-9)
    assert scene.root.position == pytest.approx([0.0, 0.0, -0.5], abs=1e-9)


def test_vanished_node_falls_back_to_root_offset(scene):
    state = GestureState()
    resolver = GrabResolver(scene)
    resolver.resolve(state, CENTRE)

    scene.root.remove(scene.resolve_node("model"))
    hand = np.array([0.2, 0.0, 0.0])
    position = resolver.root_position(state, hand)

    assert state.grab_node_id is None
    assert state.has_valid_grab
    assert position == pytest.approx(hand, abs=1e-9)
