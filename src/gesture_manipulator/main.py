"""
Entry point -- webcam capture loop.

Wires together:
  camera  ->  HandTracker  ->  GestureEngine  ->  JSON stdout + HTTP POST
                                              ->  Overlay (preview window)

Inference runs on its own :class:`PeriodicTask` at ``infer_fps``; the main
thread only reads camera frames and shows the preview.  Keyboard commands
from the preview are queued and applied inside the inference tick, so the
engine is only ever touched from one thread.

Keys: ``q`` quit, ``r`` reset the model, ``c`` start/finish pinch
calibration, ``g`` toggle gesture tracking.
"""

from __future__ import annotations

import json
import logging
import os
import queue
import sys
import threading
import time
from dataclasses import dataclass
from typing import Optional

import cv2
import httpx
import numpy as np

from gesture_manipulator.calibration import PinchCalibrator
from gesture_manipulator.config import (
    CAMERA_HEIGHT,
    CAMERA_INDEX,
    CAMERA_SRC,
    CAMERA_WIDTH,
    SERVER_URL,
    load_config,
)
from gesture_manipulator.controller import ObjectTransform
from gesture_manipulator.engine import GestureEngine
from gesture_manipulator.errors import GestureEngineError
from gesture_manipulator.hand_tracker import HandTracker, TrackingResult
from gesture_manipulator.landmarks import pinch_distance
from gesture_manipulator.overlay import draw_hands, draw_hud
from gesture_manipulator.scene import Scene, SceneNode
from gesture_manipulator.scheduler import PeriodicTask
from gesture_manipulator.state import GestureMode, RotationAxis

logger = logging.getLogger("gesture.main")

HEADLESS = os.environ.get("HEADLESS", "0") in ("1", "true", "True")


def _post_to_server(payload: dict) -> None:
    """Fire-and-forget POST to the relay server (runs in a daemon thread)."""
    try:
        httpx.post(f"{SERVER_URL}/transform", json=payload, timeout=0.5)
    except httpx.HTTPError as exc:
        logger.debug("Relay server unreachable: %s", exc)


def _emit_json(transform: ObjectTransform, timestamp: float) -> None:
    """Write a JSON line to stdout and POST it to the relay server."""
    payload = transform.to_dict()
    payload["timestamp"] = round(timestamp, 3)
    sys.stdout.write(json.dumps(payload) + "\n")
    sys.stdout.flush()

    # Non-blocking HTTP POST so the inference tick is not delayed.
    t = threading.Thread(target=_post_to_server, args=(payload,), daemon=True)
    t.start()


def build_scene() -> Scene:
    """Default scene: a unit box under the manipulated root."""
    root = SceneNode(name="model_root")
    root.add(SceneNode(name="model", bounds=((-0.5, -0.5, -0.5), (0.5, 0.5, 0.5))))
    return Scene(root=root)


@dataclass
class Snapshot:
    """What the preview needs from the latest inference tick."""

    tracking: Optional[TrackingResult] = None
    mode: GestureMode = GestureMode.NONE
    pinching: tuple[bool, bool] = (False, False)
    axis: Optional[RotationAxis] = None
    transform: Optional[ObjectTransform] = None
    status: Optional[str] = None


class GestureApp:
    """Owns the tracker, engine and the two periodic loops' shared hand-off."""

    def __init__(self, engine: GestureEngine, tracker: HandTracker) -> None:
        self.engine = engine
        self.tracker = tracker
        self.calibrator = PinchCalibrator()
        self.commands: queue.Queue[str] = queue.Queue()

        self._frame_lock = threading.Lock()
        self._latest_frame: Optional[np.ndarray] = None
        self._snapshot = Snapshot()

    # -- hand-off between threads ---------------------------------------

    def push_frame(self, frame: np.ndarray) -> None:
        with self._frame_lock:
            self._latest_frame = frame

    def snapshot(self) -> Snapshot:
        with self._frame_lock:
            return self._snapshot

    # -- inference tick ---------------------------------------------------

    def _apply_commands(self) -> None:
        while True:
            try:
                command = self.commands.get_nowait()
            except queue.Empty:
                return
            if command == "reset":
                self.engine.reset()
            elif command == "toggle":
                self.engine.set_enabled(not self.engine.enabled)
            elif command == "calibrate":
                if self.calibrator.active:
                    self.engine.set_config(self.calibrator.finish(self.engine.config))
                else:
                    self.calibrator.start()

    def infer(self, dt: float) -> None:
        self._apply_commands()
        with self._frame_lock:
            frame = self._latest_frame
            self._latest_frame = None
        if frame is None:
            return

        if not self.engine.enabled:
            # Tracking off: no detection, no calibration samples.
            with self._frame_lock:
                self._snapshot = Snapshot(transform=self._snapshot.transform, status="gestures off")
            return

        try:
            tracking = self.tracker.process(frame)
        except Exception:
            logger.exception("Hand tracking failed; skipping frame")
            return

        for hand in tracking.frame.hands:
            self.calibrator.sample(pinch_distance(hand))

        transform = self.engine.process_frame(tracking.frame, dt)
        if transform is not None:
            _emit_json(transform, tracking.frame.timestamp)

        status = None
        if self.calibrator.active:
            status = (
                f"calibrating: min={self.calibrator.min_distance:.3f} "
                f"max={self.calibrator.max_distance:.3f}"
            )

        snap = Snapshot(
            tracking=tracking,
            mode=self.engine.mode,
            pinching=self.engine.pinching,
            axis=self.engine.state.selected_axis,
            transform=transform or self._snapshot.transform,
            status=status,
        )
        with self._frame_lock:
            self._snapshot = snap


def _camera_source() -> int | str:
    # CAMERA_SRC may be a device number or a stream URL / device path.
    if CAMERA_SRC is None:
        return CAMERA_INDEX
    try:
        return int(CAMERA_SRC)
    except ValueError:
        return CAMERA_SRC


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s  %(name)-24s  %(levelname)-7s  %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )

    try:
        config = load_config()
    except GestureEngineError as exc:
        logger.error("%s", exc)
        sys.exit(1)

    camera_src = _camera_source()
    cap = cv2.VideoCapture(camera_src)
    cap.set(cv2.CAP_PROP_FRAME_WIDTH, CAMERA_WIDTH)
    cap.set(cv2.CAP_PROP_FRAME_HEIGHT, CAMERA_HEIGHT)
    if not cap.isOpened():
        logger.error("Cannot open camera source %r", camera_src)
        sys.exit(1)

    engine = GestureEngine(build_scene(), config)
    tracker = HandTracker()
    app = GestureApp(engine, tracker)
    inference = PeriodicTask("inference", 1.0 / engine.config.infer_fps, app.infer)

    logger.info("Gesture manipulator started. Press 'q' to quit.")
    inference.start()
    try:
        while True:
            ret, frame = cap.read()
            if not ret:
                time.sleep(0.01)
                continue
            app.push_frame(frame)

            if HEADLESS:
                # Nothing to draw; avoid spinning when frames arrive slowly.
                time.sleep(0.005)
                continue

            snap = app.snapshot()
            preview = frame.copy()
            if snap.tracking is not None:
                draw_hands(preview, snap.tracking.mp_landmarks, snap.pinching)
            # Mirror the preview so it feels natural (like a mirror).
            preview = cv2.flip(preview, 1)
            draw_hud(preview, snap.mode, snap.axis, snap.transform, snap.status)
            cv2.imshow("Gesture Manipulator", preview)

            key = cv2.waitKey(1) & 0xFF
            if key == ord("q"):
                break
            if key == ord("r"):
                app.commands.put("reset")
            elif key == ord("c"):
                app.commands.put("calibrate")
            elif key == ord("g"):
                app.commands.put("toggle")
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        inference.stop()
        tracker.close()
        cap.release()
        if not HEADLESS:
            cv2.destroyAllWindows()


if __name__ == "__main__":
    main()
