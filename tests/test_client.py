"""Simple WebSocket test client for manual testing against a live server.

Usage:
    python -m retris_api.server        # in one terminal
    RUN_WS_TESTS=1 pytest tests/test_client.py
    python tests/test_client.py interactive
"""

import asyncio
import json
import os

import pytest
import websockets


RUN_WS_TESTS = os.getenv("RUN_WS_TESTS") == "1"
URI = os.getenv("RETRIS_WS_URI", "ws://localhost:8000/ws")


async def recv_until(websocket, msg_type):
    """Receive messages until one of msg_type arrives, printing events."""
    while True:
        data = json.loads(await websocket.recv())
        if data["type"] == msg_type:
            return data
        if data["type"] == "event":
            print(f"   event: {data['name']} {data['args']}")


@pytest.mark.asyncio
async def test_game_session():
    """Test a complete game session."""
    if not RUN_WS_TESTS:
        pytest.skip("WebSocket integration test requires RUN_WS_TESTS=1 and backend server.")

    print("Connecting to WebSocket server...")
    async with websockets.connect(URI) as websocket:
        print("✓ Connected!")

        # 1. Send hello
        print("\n1. Sending hello...")
        await websocket.send(json.dumps({"type": "hello"}))
        data = await recv_until(websocket, "hello")
        print(f"   Server: {data}")

        # 2. Start game
        print("\n2. Starting game with seed 42...")
        await websocket.send(json.dumps({"type": "start", "seed": 42}))
        data = await recv_until(websocket, "state")
        assert data["data"]["state"] == "playing"
        print(f"   Current piece: {data['data']['current']['type']}, next: {data['data']['next']['type']}")

        # 3. Take some actions
        print("\n3. Playing some moves...")
        for action in ["RIGHT", "RIGHT", "CW", "SOFT", "SOFT", "SOFT", "HARD"]:
            await websocket.send(json.dumps({"type": "command", "action": action}))
            data = await recv_until(websocket, "command_result")
            print(f"   {action:5} → ok: {data['ok']}, score: {data['data']['score']}")

        # 4. Test invalid action
        print("\n4. Testing invalid action...")
        await websocket.send(json.dumps({"type": "command", "action": "INVALID"}))
        data = await recv_until(websocket, "error")
        assert data["code"] == "INVALID_ACTION"
        print(f"   ✓ Got expected error: {data['message']}")

        print("\n✓ All tests passed!")


@pytest.mark.asyncio
async def test_multiple_games():
    """Test playing multiple short games."""
    if not RUN_WS_TESTS:
        pytest.skip("WebSocket integration test requires RUN_WS_TESTS=1 and backend server.")

    async with websockets.connect(URI) as websocket:
        for seed in [100, 200, 300]:
            print(f"\n--- Game with seed {seed} ---")

            await websocket.send(json.dumps({"type": "start", "seed": seed}))
            data = await recv_until(websocket, "state")
            print(f"Started. Piece: {data['data']['current']['type']}")

            for _ in range(5):
                await websocket.send(json.dumps({"type": "command", "action": "SOFT"}))
                await recv_until(websocket, "command_result")

            await websocket.send(json.dumps({"type": "command", "action": "HARD"}))
            data = await recv_until(websocket, "command_result")
            assert data["data"]["score"] >= 5
            print(f"Finished. Score: {data['data']['score']}")


async def interactive_mode():
    """Interactive mode - control the game via typed commands."""
    print("Commands: left, right, cw, ccw, soft, hard, pause, start, quit")

    async with websockets.connect(URI) as websocket:
        await websocket.send(json.dumps({"type": "start"}))
        await recv_until(websocket, "state")

        while True:
            cmd = input("> ").strip().lower()

            if cmd == "quit":
                break
            elif cmd in ("start", "pause"):
                await websocket.send(json.dumps({"type": cmd}))
                data = await recv_until(websocket, "state")
                print(f"State: {data['data']['state']}")
            elif cmd in ["left", "right", "cw", "ccw", "soft", "hard"]:
                await websocket.send(json.dumps({"type": "command", "action": cmd.upper()}))
                data = await recv_until(websocket, "command_result")
                snapshot = data["data"]
                current = snapshot["current"]
                print(f"Piece: {current['type']} at ({current['x']}, {current['y']}) rot={current['rotation']}")
                print(f"Score: {snapshot['score']}, Lines: {snapshot['lines']}, Level: {snapshot['level']}")
                if snapshot["state"] == "gameover":
                    print("GAME OVER!")
            else:
                print("Unknown command")


if __name__ == "__main__":
    import sys

    mode = sys.argv[1] if len(sys.argv) > 1 else "test"

    if mode == "interactive":
        asyncio.run(interactive_mode())
    elif mode == "multiple":
        asyncio.run(test_multiple_games())
    else:
        asyncio.run(test_game_session())
