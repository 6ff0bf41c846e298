"""
Minimal scene graph used as the engine's geometry collaborator.

The engine only needs a handful of queries from whatever owns the 3-D
object (see :class:`SceneAdapter`).  :class:`Scene` implements them over a
small numpy scene graph so the capture app and the tests can run without a
renderer:

* :class:`SceneNode` -- position, Euler rotation (XYZ order, radians) and a
  uniform scale relative to its parent, plus an optional local bounding box
  that makes the node hittable by ray casts.
* :class:`PerspectiveCamera` -- view and projection matrices from ``pyrr``.
* :class:`Scene` -- screen-to-world ray/plane intersection and ray casts
  against node boxes.

Screen points use a top-left origin, ``(nx, ny)`` in ``[0, 1]``, mapped to
NDC as ``(2*nx - 1, 1 - 2*ny)``.

Node matrices use the column-vector convention (``M @ p``).  ``pyrr``
matrices are row-major for row vectors (``p @ M``); the camera keeps them in
that form and only uses them to unproject.
"""

from __future__ import annotations

import itertools
import logging
import math
from dataclasses import dataclass
from typing import Hashable, Iterator, Optional, Protocol, Sequence, runtime_checkable

import numpy as np
from pyrr import Matrix44, matrix33

from gesture_manipulator.config import MIN_DENOMINATOR

logger = logging.getLogger("gesture.scene")

RAYCAST_NEAR = 0.1
RAYCAST_FAR = 100.0

_node_ids = itertools.count(1)


def _rotation_matrix(rx: float, ry: float, rz: float) -> np.ndarray:
    """XYZ Euler rotation for column vectors (X applied last)."""
    return (
        matrix33.create_from_x_rotation(rx, dtype=np.float64)
        @ matrix33.create_from_y_rotation(ry, dtype=np.float64)
        @ matrix33.create_from_z_rotation(rz, dtype=np.float64)
    )


class SceneNode:
    """A transform node; hittable when it carries a local bounding box."""

    def __init__(
        self,
        name: str = "",
        position: Sequence[float] = (0.0, 0.0, 0.0),
        rotation: Sequence[float] = (0.0, 0.0, 0.0),
        scale: float = 1.0,
        bounds: Optional[tuple[Sequence[float], Sequence[float]]] = None,
        node_id: Optional[Hashable] = None,
    ) -> None:
        self.node_id: Hashable = node_id if node_id is not None else next(_node_ids)
        self.name = name
        self.position = np.array(position, dtype=np.float64)
        self.rotation = np.array(rotation, dtype=np.float64)
        self.scale = float(scale)
        self.bounds: Optional[tuple[np.ndarray, np.ndarray]] = None
        if bounds is not None:
            lo, hi = bounds
            self.bounds = (np.array(lo, dtype=np.float64), np.array(hi, dtype=np.float64))
        self.parent: Optional[SceneNode] = None
        self.children: list[SceneNode] = []

    def __repr__(self) -> str:
        return f"SceneNode(id={self.node_id!r}, name={self.name!r})"

    # ------------------------------------------------------------------
    # Hierarchy
    # ------------------------------------------------------------------

    def add(self, child: SceneNode) -> SceneNode:
        if child.parent is not None:
            child.parent.remove(child)
        child.parent = self
        self.children.append(child)
        return child

    def remove(self, child: SceneNode) -> None:
        if child in self.children:
            self.children.remove(child)
            child.parent = None

    def walk(self) -> Iterator[SceneNode]:
        """Depth-first iteration over this node and its descendants."""
        yield self
        for child in self.children:
            yield from child.walk()

    # ------------------------------------------------------------------
    # Transforms
    # ------------------------------------------------------------------

    def local_matrix(self) -> np.ndarray:
        m = np.identity(4)
        m[:3, :3] = _rotation_matrix(*self.rotation) * self.scale
        m[:3, 3] = self.position
        return m

    def world_matrix(self) -> np.ndarray:
        m = self.local_matrix()
        if self.parent is not None:
            m = self.parent.world_matrix() @ m
        return m

    def local_to_world(self, point: Sequence[float]) -> np.ndarray:
        p = np.append(np.asarray(point, dtype=np.float64), 1.0)
        return (self.world_matrix() @ p)[:3]

    def world_to_local(self, point: Sequence[float]) -> np.ndarray:
        p = np.append(np.asarray(point, dtype=np.float64), 1.0)
        return (np.linalg.inv(self.world_matrix()) @ p)[:3]

    def reset_transform(self) -> None:
        self.position = np.zeros(3)
        self.rotation = np.zeros(3)
        self.scale = 1.0


class PerspectiveCamera:
    """Pinhole camera looking from *position* at *target*."""

    def __init__(
        self,
        fov_deg: float = 60.0,
        aspect: float = 16.0 / 9.0,
        near: float = 0.1,
        far: float = 100.0,
        position: Sequence[float] = (0.0, 0.0, 5.0),
        target: Sequence[float] = (0.0, 0.0, 0.0),
        up: Sequence[float] = (0.0, 1.0, 0.0),
    ) -> None:
        self.fov_deg = fov_deg
        self.aspect = aspect
        self.near = near
        self.far = far
        self.position = np.array(position, dtype=np.float64)
        self.target = np.array(target, dtype=np.float64)
        self.up = np.array(up, dtype=np.float64)

    def view_matrix(self) -> np.ndarray:
        return np.asarray(Matrix44.look_at(self.position, self.target, self.up))

    def projection_matrix(self) -> np.ndarray:
        return np.asarray(
            Matrix44.perspective_projection(self.fov_deg, self.aspect, self.near, self.far)
        )

    def ray_from_screen(self, nx: float, ny: float) -> tuple[np.ndarray, np.ndarray]:
        """World-space ray (origin, unit direction) through a screen point."""
        ndc_x = nx * 2.0 - 1.0
        ndc_y = 1.0 - ny * 2.0
        inv = np.linalg.inv(self.view_matrix() @ self.projection_matrix())

        near = np.array([ndc_x, ndc_y, -1.0, 1.0]) @ inv
        far = np.array([ndc_x, ndc_y, 1.0, 1.0]) @ inv
        near = near[:3] / near[3]
        far = far[:3] / far[3]

        direction = far - near
        direction /= np.linalg.norm(direction)
        return self.position.copy(), direction


@dataclass
class RayHit:
    """Nearest ray-cast intersection."""

    point: np.ndarray          # world space
    local_point: np.ndarray    # in the hit node's local space
    node_id: Hashable
    distance: float


@runtime_checkable
class SceneAdapter(Protocol):
    """What the engine needs from the scene that owns the manipulated object."""

    root: SceneNode
    camera: PerspectiveCamera

    def screen_to_world(self, nx: float, ny: float, z_plane: float = 0.0) -> Optional[np.ndarray]: ...

    def raycast(self, nx: float, ny: float) -> Optional[RayHit]: ...

    def resolve_node(self, node_id: Hashable) -> Optional[SceneNode]: ...


def _slab_intersect(
    origin: np.ndarray,
    direction: np.ndarray,
    lo: np.ndarray,
    hi: np.ndarray,
) -> Optional[float]:
    """Entry parameter of the ray into the box, or ``None`` on a miss."""
    t_min = -math.inf
    t_max = math.inf
    for axis in range(3):
        d = direction[axis]
        if abs(d) < MIN_DENOMINATOR:
            if origin[axis] < lo[axis] or origin[axis] > hi[axis]:
                return None
            continue
        t1 = (lo[axis] - origin[axis]) / d
        t2 = (hi[axis] - origin[axis]) / d
        if t1 > t2:
            t1, t2 = t2, t1
        t_min = max(t_min, t1)
        t_max = min(t_max, t2)
        if t_min > t_max:
            return None
    if t_max < 0:
        return None
    return t_min if t_min >= 0 else t_max


class Scene:
    """A camera plus the root of the manipulable object."""

    def __init__(self, camera: Optional[PerspectiveCamera] = None, root: Optional[SceneNode] = None) -> None:
        self.camera = camera or PerspectiveCamera()
        self.root = root or SceneNode(name="root")

    def screen_to_world(self, nx: float, ny: float, z_plane: float = 0.0) -> Optional[np.ndarray]:
        """Intersect the screen ray with the plane ``z = z_plane``."""
        origin, direction = self.camera.ray_from_screen(nx, ny)
        if abs(direction[2]) < MIN_DENOMINATOR:
            return None
        t = (z_plane - origin[2]) / direction[2]
        if t < 0:
            return None
        return origin + direction * t

    def raycast(self, nx: float, ny: float) -> Optional[RayHit]:
        """Nearest hit against every boxed node under the root."""
        origin, direction = self.camera.ray_from_screen(nx, ny)
        best: Optional[RayHit] = None

        for node in self.root.walk():
            if node.bounds is None:
                continue
            inv = np.linalg.inv(node.world_matrix())
            local_origin = (inv @ np.append(origin, 1.0))[:3]
            local_dir = inv[:3, :3] @ direction
            # The ray parameter is unchanged by the affine map, so t is a
            # world-space distance along the unit direction.
            t = _slab_intersect(local_origin, local_dir, *node.bounds)
            if t is None or t < RAYCAST_NEAR or t > RAYCAST_FAR:
                continue
            if best is None or t < best.distance:
                best = RayHit(
                    point=origin + direction * t,
                    local_point=local_origin + local_dir * t,
                    node_id=node.node_id,
                    distance=float(t),
                )
        return best

    def resolve_node(self, node_id: Hashable) -> Optional[SceneNode]:
        """Look a node up by id; ``None`` once it has left the tree."""
        for node in self.root.walk():
            if node.node_id == node_id:
                return node
        return None
