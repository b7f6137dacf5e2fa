"""Game engine: spawn/lock cycle, gravity, scoring, levels and game over.

The engine is a synchronous state machine. Input layers call the command
methods, a GravityTimer calls drop() on the current level's period, and
listeners registered on `events` are notified as things happen.
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional

from retris_core.board import Board
from retris_core.catalog import PieceType
from retris_core.events import EventDispatcher, GameListener
from retris_core.piece import Tetromino
from retris_core.rng import BagRandomizer
from retris_core.rules import (
    HARD_DROP_POINTS,
    SOFT_DROP_POINTS,
    LockDelay,
    calculate_score,
    drop_interval_ms,
    level_for_lines,
)
from retris_core.scheduler import GravityTimer, ManualScheduler, Scheduler

logger = logging.getLogger(__name__)


class GameState(str, Enum):
    """Session lifecycle states."""
    MENU = "menu"
    PLAYING = "playing"
    PAUSED = "paused"
    GAME_OVER = "gameover"


class Game:
    """Single-player falling block game session."""

    def __init__(
        self,
        scheduler: Optional[Scheduler] = None,
        seed: Optional[int] = None,
        lock_delay_ms: int = 0,
        width: int = Board.WIDTH,
        height: int = Board.HEIGHT,
    ):
        """Initialize the engine in the menu state.

        Args:
            scheduler: Timer source for gravity (default: ManualScheduler)
            seed: Seed for the piece bag (None = non-deterministic)
            lock_delay_ms: Grace period before a grounded piece locks
                (0 = lock on the first failed gravity step)
            width: Board columns
            height: Board rows
        """
        self.scheduler = scheduler if scheduler is not None else ManualScheduler()
        self.seed = seed
        self.board = Board(width, height)
        self.randomizer = BagRandomizer(seed)
        self.events = EventDispatcher()

        self.current_piece: Optional[Tetromino] = None
        self.next_piece: Optional[Tetromino] = None

        self.score = 0
        self.level = 1
        self.lines = 0
        self.state = GameState.MENU

        self.gravity = GravityTimer(self.scheduler)
        self.lock_delay = LockDelay(lock_delay_ms)
        self._lock_handle: Any = None

    @property
    def is_locking(self) -> bool:
        return self.lock_delay.active

    def add_listener(self, listener: GameListener) -> None:
        self.events.add(listener)

    def remove_listener(self, listener: GameListener) -> None:
        self.events.remove(listener)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, seed: Optional[int] = None) -> None:
        """Start a new game, discarding any previous session state.

        Args:
            seed: Bag seed for this session (default: the constructor seed)
        """
        # Invalidate old timers before touching state
        self.stop()

        if seed is not None:
            self.seed = seed
        self.board.reset()
        self.randomizer = BagRandomizer(self.seed)
        self.score = 0
        self.level = 1
        self.lines = 0

        self.current_piece = self._draw_piece()
        self.next_piece = self._draw_piece()

        self.state = GameState.PLAYING
        logger.info("Game started (seed=%s, first=%s)", self.seed, self.current_piece.type.value)
        self._start_gravity()

        if self.board.is_game_over(self.current_piece):
            self._game_over()

    def pause(self) -> None:
        """Toggle between playing and paused. No-op in other states."""
        if self.state == GameState.PLAYING:
            self.state = GameState.PAUSED
            self.gravity.stop()
            self._cancel_lock_delay()
            logger.debug("Game paused")
        elif self.state == GameState.PAUSED:
            self.state = GameState.PLAYING
            self._start_gravity()
            logger.debug("Game resumed")

    def stop(self) -> None:
        """Cancel all timers owned by this session."""
        self.gravity.stop()
        self._cancel_lock_delay()

    def get_drop_interval_ms(self) -> int:
        """Gravity period for the current level."""
        return drop_interval_ms(self.level)

    def _start_gravity(self) -> None:
        self.gravity.start(self.get_drop_interval_ms(), self._on_gravity_tick)

    def _on_gravity_tick(self) -> None:
        if self.state == GameState.PLAYING:
            self.drop()

    def _draw_piece(self) -> Tetromino:
        return Tetromino.spawn(self.randomizer.next())

    def _can_act(self) -> bool:
        return self.state == GameState.PLAYING and self.current_piece is not None

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def drop(self) -> bool:
        """One gravity step: move down, or lock (or start locking) if grounded.

        Returns:
            True if the piece moved down
        """
        if not self._can_act():
            return False

        if self.move_down():
            return True

        if not self.lock_delay.enabled:
            self.lock_piece()
        elif not self.lock_delay.active:
            self._arm_lock_delay()
        return False

    def move_left(self) -> bool:
        return self._shift(-1)

    def move_right(self) -> bool:
        return self._shift(1)

    def _shift(self, dx: int) -> bool:
        if not self._can_act():
            return False

        if self.board.is_valid_position(self.current_piece, dx, 0):
            self.current_piece.x += dx
            self._reset_lock_delay()
            return True
        return False

    def move_down(self) -> bool:
        """Move the piece one row down. No scoring."""
        if not self._can_act():
            return False

        if self.board.is_valid_position(self.current_piece, 0, 1):
            self.current_piece.y += 1
            return True
        return False

    def soft_drop(self) -> bool:
        """Move down one row, awarding one point on success."""
        if self.move_down():
            self.score += SOFT_DROP_POINTS
            self.events.emit("on_score_update", self.score)
            return True
        return False

    def hard_drop(self) -> bool:
        """Drop the piece to its landing row and lock it immediately.

        Returns:
            True if the drop happened (False when not playing)
        """
        if not self._can_act():
            return False

        distance = 0
        while self.board.is_valid_position(self.current_piece, 0, 1):
            self.current_piece.y += 1
            distance += 1

        self.score += distance * HARD_DROP_POINTS
        self.events.emit("on_score_update", self.score)

        self.lock_piece()
        return True

    def rotate(self, direction: int = 1) -> bool:
        """Rotate using SRS wall kicks.

        Args:
            direction: +1 for clockwise, -1 for counter-clockwise

        Returns:
            True if some kick candidate fit and the rotation was applied
        """
        if not self._can_act():
            return False

        piece = self.current_piece
        to_rotation = piece.rotation_target(direction)
        if piece.type == PieceType.O:
            return False

        from_rotation = piece.rotation_index

        for kick_x, kick_y in piece.get_wall_kicks(from_rotation, to_rotation):
            if self.board.is_valid_rotation(piece, to_rotation, kick_x, kick_y):
                piece.rotation_index = to_rotation
                piece.x += kick_x
                piece.y += kick_y
                self._reset_lock_delay()
                return True

        return False

    # ------------------------------------------------------------------
    # Locking
    # ------------------------------------------------------------------

    def _arm_lock_delay(self) -> None:
        self.lock_delay.arm()
        self._lock_handle = self.scheduler.call_later(
            self.lock_delay.delay_ms, self._on_lock_delay_expired
        )

    def _cancel_lock_delay(self) -> None:
        if self._lock_handle is not None:
            self._lock_handle.cancel()
            self._lock_handle = None
        self.lock_delay.reset()

    def _reset_lock_delay(self) -> None:
        """A successful move or rotation interrupts the grounded state."""
        if self.lock_delay.active:
            self._cancel_lock_delay()

    def _on_lock_delay_expired(self) -> None:
        self._lock_handle = None
        if self.state != GameState.PLAYING or not self.lock_delay.active:
            return
        if self.is_at_bottom():
            self.lock_piece()
        else:
            self.lock_delay.reset()

    def lock_piece(self) -> None:
        """Fix the current piece into the board, score it and spawn the next.

        No-op unless playing, so a finished game keeps its final board and stats.
        """
        if not self._can_act():
            return

        self._cancel_lock_delay()

        self.board.place_tetromino(self.current_piece)
        logger.debug("Locked %r", self.current_piece)
        self.events.emit("on_piece_place")

        lines_cleared = self.board.clear_lines()
        if lines_cleared > 0:
            points = calculate_score(lines_cleared, self.level)
            self.score += points
            self.lines += lines_cleared

            self.events.emit("on_line_clear", lines_cleared, points)
            self.events.emit("on_score_update", self.score)

            new_level = level_for_lines(self.lines)
            if new_level > self.level:
                self.level = new_level
                logger.info("Level up: %d (%d ms/row)", self.level, self.get_drop_interval_ms())
                self._start_gravity()
                self.events.emit("on_level_up", self.level)

        self.current_piece = self.next_piece
        self.next_piece = self._draw_piece()

        if self.board.is_game_over(self.current_piece):
            self._game_over()

    def _game_over(self) -> None:
        self.state = GameState.GAME_OVER
        self.stop()
        logger.info(
            "Game over: score=%d level=%d lines=%d", self.score, self.level, self.lines
        )
        self.events.emit("on_game_over", self.score, self.level, self.lines)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_ghost_y(self) -> int:
        if self.current_piece is None:
            return 0
        return self.board.get_ghost_position(self.current_piece)

    def is_at_bottom(self) -> bool:
        if self.current_piece is None:
            return False
        return not self.board.is_valid_position(self.current_piece, 0, 1)

    def snapshot(self) -> Dict[str, Any]:
        """Observable state for renderers, as plain JSON-ready data."""
        return {
            "state": self.state.value,
            "score": self.score,
            "level": self.level,
            "lines": self.lines,
            "drop_interval_ms": self.get_drop_interval_ms(),
            "is_locking": self.is_locking,
            "board": {
                "width": self.board.width,
                "height": self.board.height,
                "grid": self.board.to_list(),
                "cleared_lines": list(self.board.cleared_lines),
            },
            "current": self.current_piece.to_dict() if self.current_piece else None,
            "next": self.next_piece.to_dict() if self.next_piece else None,
            "ghost_y": self.get_ghost_y(),
        }
