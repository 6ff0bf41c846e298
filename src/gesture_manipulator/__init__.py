"""Hand-gesture manipulation engine: hand landmarks in, object transforms out."""

from gesture_manipulator.config import GestureConfig, load_config
from gesture_manipulator.controller import ObjectTransform
from gesture_manipulator.engine import GestureEngine
from gesture_manipulator.errors import ConfigError, GestureEngineError, SceneInterfaceError
from gesture_manipulator.landmarks import HandFrame
from gesture_manipulator.scene import PerspectiveCamera, RayHit, Scene, SceneAdapter, SceneNode
from gesture_manipulator.state import GestureMode, GestureState, RotationAxis

__all__ = [
    "ConfigError",
    "GestureConfig",
    "GestureEngine",
    "GestureEngineError",
    "GestureMode",
    "GestureState",
    "HandFrame",
    "ObjectTransform",
    "PerspectiveCamera",
    "RayHit",
    "RotationAxis",
    "Scene",
    "SceneAdapter",
    "SceneInterfaceError",
    "SceneNode",
    "load_config",
]
