"""
Grab-point resolution for the one-hand move gesture.

When a pinch starts, the resolver works out which point of the object the
hand is holding.  The pinch centre is cast into the scene:

* **hit** -- the hit point is stored in root-local space and in the local
  space of the node that was hit, and the hand-to-hit offset is frozen.
* **miss** -- the object root itself becomes the anchor, so the object
  still follows the hand without a precise grab point.

Each tick :func:`root_position` rebuilds the root position from the
filtered hand point.  The grab point is converted back to world space from
the *live* node transform, so scale or rotation applied since the grab is
taken into account.
"""

from __future__ import annotations

import logging

import numpy as np

from gesture_manipulator.scene import SceneAdapter
from gesture_manipulator.state import GestureState

logger = logging.getLogger("gesture.grab")


class GrabResolver:
    def __init__(self, scene: SceneAdapter) -> None:
        self.scene = scene

    def resolve(self, state: GestureState, screen_point: np.ndarray) -> bool:
        """Freeze the grab for a move starting at *screen_point*.

        Returns ``state.has_valid_grab``.
        """
        nx, ny = float(screen_point[0]), float(screen_point[1])
        hand_world = self.scene.screen_to_world(nx, ny, 0.0)
        if hand_world is None:
            logger.warning("Pinch point (%.3f, %.3f) does not reach the z=0 plane", nx, ny)
            state.has_valid_grab = False
            return False

        root = self.scene.root
        hit = self.scene.raycast(nx, ny)

        if hit is not None:
            state.grab_offset = root.world_to_local(hit.point)
            state.hand_to_model_offset = hit.point - hand_world
            state.grab_node_id = hit.node_id
            state.grab_local_on_node = np.array(hit.local_point, dtype=np.float64)
            state.has_valid_grab = True
            logger.info(
                "Raycast grab on node %r: local=%s offset=%s",
                hit.node_id,
                np.round(state.grab_offset, 3).tolist(),
                np.round(state.hand_to_model_offset, 3).tolist(),
            )
        else:
            state.grab_offset = np.zeros(3)
            state.hand_to_model_offset = root.position - hand_world
            state.grab_node_id = None
            state.grab_local_on_node = None
            state.has_valid_grab = False
            logger.info(
                "Fallback grab: hand=%s offset=%s",
                np.round(hand_world, 3).tolist(),
                np.round(state.hand_to_model_offset, 3).tolist(),
            )

        state.grab_world_pos = np.array(hand_world, dtype=np.float64)
        state.grab_start_model_pos = root.position.copy()
        return state.has_valid_grab

    def current_grab_world(self, state: GestureState) -> np.ndarray:
        """World position of the held point under the current transforms.

        Falls back to the root-local grab offset when the grabbed node no
        longer resolves.
        """
        if state.grab_node_id is not None and state.grab_local_on_node is not None:
            node = self.scene.resolve_node(state.grab_node_id)
            if node is not None:
                return node.local_to_world(state.grab_local_on_node)
            logger.info("Grabbed node %r is gone; using root offset", state.grab_node_id)
            state.grab_node_id = None
            state.grab_local_on_node = None
        return self.scene.root.local_to_world(state.grab_offset)

    def root_position(self, state: GestureState, hand_world: np.ndarray) -> np.ndarray:
        """Root position that puts the held point under *hand_world*."""
        anchor = hand_world + state.hand_to_model_offset
        if not state.has_valid_grab:
            return anchor
        grab_world = self.current_grab_world(state)
        return anchor - (grab_world - self.scene.root.position)
