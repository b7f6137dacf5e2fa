"""Tests for the WebSocket API using FastAPI's test client."""

import pytest
from fastapi.testclient import TestClient

from retris_api import server
from retris_core.highscores import HighScoreTable


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(server, "highscores", HighScoreTable())
    return TestClient(server.app)


def receive_until(websocket, msg_type, limit=200):
    """Read messages until one of msg_type arrives.

    Returns:
        (matching message, list of messages received before it)
    """
    before = []
    for _ in range(limit):
        message = websocket.receive_json()
        if message["type"] == msg_type:
            return message, before
        before.append(message)
    raise AssertionError(f"No {msg_type} message received")


def test_health_endpoints(client):
    """Test HTTP health checks."""
    assert client.get("/").json()["status"] == "ok"
    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/highscores").json() == {"scores": []}


def test_hello_and_start(client):
    """Test the handshake and starting a game."""
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "hello"})
        hello = ws.receive_json()
        assert hello["type"] == "hello"
        assert hello["server"] == "retris-core-py"

        ws.send_json({"type": "start", "seed": 42})
        state, _ = receive_until(ws, "state")
        data = state["data"]
        assert data["state"] == "playing"
        assert data["score"] == 0
        assert data["current"] is not None
        assert data["next"] is not None


def test_commands(client):
    """Test movement commands report success and the new snapshot."""
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "start", "seed": 42})
        receive_until(ws, "state")

        ws.send_json({"type": "command", "action": "LEFT"})
        result, _ = receive_until(ws, "command_result")
        assert result["action"] == "LEFT"
        assert result["ok"] is True

        ws.send_json({"type": "command", "action": "HARD"})
        result, before = receive_until(ws, "command_result")
        event_names = [m["name"] for m in before if m["type"] == "event"]
        assert "score_update" in event_names
        assert "piece_place" in event_names
        assert result["data"]["board"]["grid"][19] != [None] * 10


def test_command_before_start_is_rejected_quietly(client):
    """Test commands outside play return ok=False rather than an error."""
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "command", "action": "CW"})
        result, _ = receive_until(ws, "command_result")
        assert result["ok"] is False
        assert result["data"]["state"] == "menu"


def test_pause_toggles(client):
    """Test pause and resume."""
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "start"})
        receive_until(ws, "state")

        ws.send_json({"type": "pause"})
        state, _ = receive_until(ws, "state")
        assert state["data"]["state"] == "paused"

        ws.send_json({"type": "pause"})
        state, _ = receive_until(ws, "state")
        assert state["data"]["state"] == "playing"


def test_errors(client):
    """Test malformed input produces error messages."""
    with client.websocket_connect("/ws") as ws:
        ws.send_text("{not json")
        error = ws.receive_json()
        assert error["type"] == "error"
        assert error["code"] == "INVALID_MESSAGE"

        ws.send_json({"type": "bogus"})
        error = ws.receive_json()
        assert error["code"] == "INVALID_MESSAGE"

        ws.send_json({"type": "command", "action": "JUMP"})
        error, _ = receive_until(ws, "error")
        assert error["code"] == "INVALID_ACTION"

        ws.send_json({"type": "submit_score", "name": "ann"})
        error, _ = receive_until(ws, "error")
        assert error["code"] == "GAME_NOT_FINISHED"


@pytest.mark.parametrize("message", [
    {"type": "subscribe", "fps": "fast"},
    {"type": "subscribe", "stream": "yes"},
    {"type": "start", "seed": {"a": 1}},
    {"type": "start", "seed": True},
    {"type": "command", "action": 3},
    {"type": "submit_score", "name": ["ann"]},
])
def test_wrong_field_types_keep_connection_open(client, message):
    """Test mistyped fields get an error reply and the socket stays usable."""
    with client.websocket_connect("/ws") as ws:
        ws.send_json(message)
        error = ws.receive_json()
        assert error["type"] == "error"
        assert error["code"] == "INVALID_MESSAGE"

        ws.send_json({"type": "hello"})
        hello, _ = receive_until(ws, "hello")
        assert hello["server"] == "retris-core-py"


def test_play_to_game_over_and_submit(client):
    """Test hard dropping until top out, then recording the score."""
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "start", "seed": 7})
        receive_until(ws, "state")

        game_over = None
        for _ in range(100):
            ws.send_json({"type": "command", "action": "HARD"})
            result, before = receive_until(ws, "command_result")
            events = [m for m in before if m["type"] == "event"]
            game_over = next((e for e in events if e["name"] == "game_over"), None)
            if game_over:
                break

        assert game_over is not None, "Stacking in the middle should top out"
        assert result["data"]["state"] == "gameover"
        final_score = game_over["args"][0]

        ws.send_json({"type": "submit_score", "name": "ann"})
        response, _ = receive_until(ws, "highscores")
        assert response["rank"] == 1
        assert response["scores"][0]["name"] == "ann"
        assert response["scores"][0]["score"] == final_score

    assert client.get("/highscores").json()["scores"][0]["name"] == "ann"


def test_subscribe_streams_snapshots(client):
    """Test snapshot streaming after subscribing."""
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "start", "seed": 1})
        receive_until(ws, "state")

        ws.send_json({"type": "subscribe", "stream": True, "fps": 50})
        ack, _ = receive_until(ws, "subscribe_ack")
        assert ack["streaming"] is True

        state, _ = receive_until(ws, "state")
        assert state["data"]["state"] == "playing"

        ws.send_json({"type": "subscribe", "stream": False})
        ack, _ = receive_until(ws, "subscribe_ack")
        assert ack["streaming"] is False
