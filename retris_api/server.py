"""FastAPI WebSocket server for the Retris engine.

Each WebSocket connection owns one Game whose gravity runs on the server's
event loop. Client input and gravity ticks share that loop, so they never
interleave mid-operation.
"""

import asyncio
import json
import logging
import os
from dataclasses import asdict
from typing import Any, Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

# Configure logging
logging.basicConfig(level=os.getenv("RETRIS_LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

from retris_core.events import GameListener
from retris_core.game import Game, GameState
from retris_core.highscores import HighScoreTable
from retris_core.scheduler import AsyncioScheduler
from retris_api.protocol import (
    Action,
    CommandRequest,
    CommandResult,
    ErrorCode,
    ErrorResponse,
    EventMessage,
    HelloRequest,
    HelloResponse,
    HighScoresResponse,
    PauseRequest,
    StartRequest,
    StateRequest,
    StateResponse,
    SubmitScoreRequest,
    SubscribeRequest,
    parse_action,
    parse_message,
    to_dict,
)

DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://localhost:5173"  # Vite default ports

app = FastAPI(title="Retris API", version="0.1.0")

# Enable CORS for web frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("RETRIS_CORS_ORIGINS", DEFAULT_CORS_ORIGINS).split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

highscores = HighScoreTable(os.getenv("RETRIS_HIGHSCORES") or None)


class SessionListener(GameListener):
    """Forwards engine notifications to the client."""

    def __init__(self, session: "PlayerSession"):
        self.session = session

    def _forward(self, name: str, *args: Any) -> None:
        self.session.send(EventMessage(name=name, args=list(args)))

    def on_score_update(self, score: int) -> None:
        self._forward("score_update", score)

    def on_level_up(self, level: int) -> None:
        self._forward("level_up", level)

    def on_line_clear(self, lines_cleared: int, points: int) -> None:
        self._forward("line_clear", lines_cleared, points)

    def on_game_over(self, score: int, level: int, lines: int) -> None:
        self._forward("game_over", score, level, lines)
        self.session.stop_streaming()

    def on_piece_place(self) -> None:
        self._forward("piece_place")


class PlayerSession:
    """Manages a single player's game over one WebSocket."""

    def __init__(self, websocket: WebSocket, scores: HighScoreTable):
        self.websocket = websocket
        self.scores = scores
        self.game = Game(scheduler=AsyncioScheduler())
        self.game.add_listener(SessionListener(self))
        self.outbox: asyncio.Queue = asyncio.Queue()
        self.writer_task: Optional[asyncio.Task] = None
        self.stream_task: Optional[asyncio.Task] = None
        self.score_submitted = False

    def open(self) -> None:
        """Start the writer task that drains the outbox."""
        self.writer_task = asyncio.create_task(self.run_writer())

    def send(self, message: Any) -> None:
        """Queue a protocol message. Messages go out in queue order."""
        if not isinstance(message, dict):
            message = to_dict(message)
        self.outbox.put_nowait(message)

    async def run_writer(self) -> None:
        while True:
            message = await self.outbox.get()
            try:
                await self.websocket.send_text(json.dumps(message))
            except Exception as e:
                logger.warning(f"[Session] Failed to send {message.get('type')}: {e}")
                return

    def state(self) -> StateResponse:
        return StateResponse(data=self.game.snapshot())

    def start(self, seed: Optional[int] = None) -> StateResponse:
        """Start a new game.

        Args:
            seed: Bag seed (None = random)

        Returns:
            Initial snapshot
        """
        self.game.start(seed)
        self.score_submitted = False
        logger.info(f"[Session] Game started: seed={seed}")
        return self.state()

    def pause(self) -> StateResponse:
        self.game.pause()
        return self.state()

    def command(self, action: str) -> CommandResult:
        """Apply a player command.

        Args:
            action: Action name (LEFT, RIGHT, SOFT, HARD, CW, CCW)

        Returns:
            Command outcome with the resulting snapshot

        Raises:
            ValueError: If the action is invalid
        """
        parsed = parse_action(action)

        if parsed == Action.LEFT:
            ok = self.game.move_left()
        elif parsed == Action.RIGHT:
            ok = self.game.move_right()
        elif parsed == Action.SOFT:
            ok = self.game.soft_drop()
        elif parsed == Action.HARD:
            ok = self.game.hard_drop()
        elif parsed == Action.CW:
            ok = self.game.rotate(1)
        else:
            ok = self.game.rotate(-1)

        return CommandResult(action=parsed.value, ok=ok, data=self.game.snapshot())

    def submit_score(self, name: str) -> HighScoresResponse:
        """Record the finished game in the high score table.

        Raises:
            ValueError: If the game is not over or was already submitted
        """
        if self.game.state != GameState.GAME_OVER or self.score_submitted:
            raise ValueError("No finished game to submit")

        rank = self.scores.get_rank(self.game.score)
        entries = self.scores.save_score(name, self.game.score, self.game.level)
        self.score_submitted = True
        return HighScoresResponse(scores=[asdict(e) for e in entries], rank=rank)

    def set_streaming(self, enabled: bool, fps: float = 30.0) -> None:
        """Enable/disable periodic snapshot streaming.

        Args:
            enabled: Whether to stream snapshots
            fps: Snapshots per second

        Raises:
            ValueError: If fps is not positive
        """
        self.stop_streaming()
        if not enabled:
            return
        if fps <= 0:
            raise ValueError(f"fps must be positive, got {fps}")
        self.stream_task = asyncio.create_task(self.run_stream(1.0 / fps))

    def stop_streaming(self) -> None:
        if self.stream_task and not self.stream_task.done():
            self.stream_task.cancel()
        self.stream_task = None

    async def run_stream(self, interval: float) -> None:
        """Send a snapshot every interval seconds, like a render loop."""
        try:
            while True:
                self.send(self.state())
                await asyncio.sleep(interval)
        except asyncio.CancelledError:
            logger.debug("[Session] Streaming stopped")
            raise

    def handle(self, message: Any) -> None:
        """Dispatch a parsed client message.

        Raises:
            ValueError: If the message carries invalid parameters
        """
        if isinstance(message, HelloRequest):
            self.send(HelloResponse())
        elif isinstance(message, StartRequest):
            self.send(self.start(message.seed))
        elif isinstance(message, PauseRequest):
            self.send(self.pause())
        elif isinstance(message, CommandRequest):
            self.send(self.command(message.action))
        elif isinstance(message, StateRequest):
            self.send(self.state())
        elif isinstance(message, SubscribeRequest):
            self.set_streaming(message.stream, message.fps)
            self.send({"type": "subscribe_ack", "streaming": self.stream_task is not None})
        elif isinstance(message, SubmitScoreRequest):
            self.send(self.submit_score(message.name))
        else:
            raise ValueError(f"Unknown message type: {type(message)}")

    async def close(self) -> None:
        """Stop the game timers and background tasks."""
        self.game.stop()
        self.stop_streaming()
        if self.writer_task is not None:
            self.writer_task.cancel()
            await asyncio.gather(self.writer_task, return_exceptions=True)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "retris-api", "version": "0.1.0"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/highscores")
async def get_highscores():
    """Current high score ranking."""
    return {"scores": [asdict(entry) for entry in highscores.get_scores()]}


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """WebSocket endpoint for game communication."""
    await websocket.accept()
    session = PlayerSession(websocket, highscores)
    session.open()

    try:
        while True:
            data = await websocket.receive_text()

            try:
                message = parse_message(json.loads(data))
            except json.JSONDecodeError as e:
                session.send(ErrorResponse(
                    code=ErrorCode.INVALID_MESSAGE,
                    message=f"Invalid JSON: {str(e)}",
                ))
                continue
            except ValueError as e:
                session.send(ErrorResponse(code=ErrorCode.INVALID_MESSAGE, message=str(e)))
                continue

            try:
                session.handle(message)
            except ValueError as e:
                if isinstance(message, CommandRequest):
                    code = ErrorCode.INVALID_ACTION
                elif isinstance(message, SubmitScoreRequest):
                    code = ErrorCode.GAME_NOT_FINISHED
                else:
                    code = ErrorCode.INVALID_MESSAGE
                session.send(ErrorResponse(code=code, message=str(e)))

    except WebSocketDisconnect:
        logger.info("[WS] Client disconnected")
    finally:
        await session.close()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=os.getenv("RETRIS_HOST", "0.0.0.0"),
        port=int(os.getenv("RETRIS_PORT", "8000")),
    )
