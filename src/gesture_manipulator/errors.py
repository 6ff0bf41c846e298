"""Exception types raised by the gesture engine.

Per-tick sensor noise never raises; these only surface at initialization
(bad configuration, incomplete scene collaborator).
"""

from __future__ import annotations


class GestureEngineError(Exception):
    """Base class for all engine errors."""


class ConfigError(GestureEngineError):
    """Configuration file could not be read or holds an invalid value."""


class SceneInterfaceError(GestureEngineError):
    """The scene collaborator is missing a query the engine depends on."""
