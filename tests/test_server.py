"""Tests for the relay server."""

from __future__ import annotations

import time

import pytest
from fastapi.testclient import TestClient

from gesture_manipulator.server.main import app
from gesture_manipulator.server.state import app_state

TRANSFORM = {
    "position": [0.1, -0.2, 0.0],
    "yaw": 0.5,
    "roll": 0.0,
    "scale": 1.2,
    "mode": "move",
    "timestamp": 12.5,
}


def _wait_for_clients(count: int, timeout: float = 2.0) -> None:
    deadline = time.monotonic() + timeout
    while app_state.client_count < count and time.monotonic() < deadline:
        time.sleep(0.01)
    assert app_state.client_count >= count


@pytest.fixture
def client():
    app_state.reset()
    with TestClient(app) as c:
        yield c
    app_state.reset()


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_post_then_get_transform(client):
    assert client.get("/transform").json() == {"transform": None}

    resp = client.post("/transform", json=TRANSFORM)
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"

    stored = client.get("/transform").json()["transform"]
    assert stored["position"] == TRANSFORM["position"]
    assert stored["mode"] == "move"
    assert client.get("/health").json()["received"] == 1


@pytest.mark.parametrize(
    "patch",
    [{"position": [0.0, 1.0]}, {"mode": "juggle"}, {"scale": 0.0}],
)
def test_invalid_transform_rejected(client, patch):
    resp = client.post("/transform", json={**TRANSFORM, **patch})
    assert resp.status_code == 422


def test_websocket_receives_broadcast(client):
    with client.websocket_connect("/ws") as ws:
        _wait_for_clients(1)
        client.post("/transform", json=TRANSFORM)
        message = ws.receive_json()
    assert message["type"] == "transform"
    assert message["scale"] == 1.2
    assert message["mode"] == "move"


def test_websocket_gets_last_transform_on_connect(client):
    client.post("/transform", json=TRANSFORM)
    with client.websocket_connect("/ws") as ws:
        message = ws.receive_json()
    assert message["type"] == "transform"
    assert message["timestamp"] == 12.5
