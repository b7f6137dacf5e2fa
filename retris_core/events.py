"""Observer interface for game notifications."""

from typing import Any, Callable, List, Optional


class GameListener:
    """Receives game notifications. Override only the hooks you need.

    Hooks are called synchronously, in order, from inside the game method
    that caused them.
    """

    def on_score_update(self, score: int) -> None:
        pass

    def on_level_up(self, level: int) -> None:
        pass

    def on_line_clear(self, lines_cleared: int, points: int) -> None:
        pass

    def on_game_over(self, score: int, level: int, lines: int) -> None:
        pass

    def on_piece_place(self) -> None:
        pass


EVENT_NAMES = (
    "on_score_update",
    "on_level_up",
    "on_line_clear",
    "on_game_over",
    "on_piece_place",
)


class CallbackListener(GameListener):
    """Adapts plain callables to the listener interface.

    Example:
        game.events.add(CallbackListener(on_game_over=show_results))
    """

    def __init__(self, **callbacks: Optional[Callable[..., Any]]):
        unknown = set(callbacks) - set(EVENT_NAMES)
        if unknown:
            raise ValueError(f"Unknown event callbacks: {sorted(unknown)}")
        self._callbacks = callbacks

    def _call(self, name: str, *args: Any) -> None:
        callback = self._callbacks.get(name)
        if callback is not None:
            callback(*args)

    def on_score_update(self, score: int) -> None:
        self._call("on_score_update", score)

    def on_level_up(self, level: int) -> None:
        self._call("on_level_up", level)

    def on_line_clear(self, lines_cleared: int, points: int) -> None:
        self._call("on_line_clear", lines_cleared, points)

    def on_game_over(self, score: int, level: int, lines: int) -> None:
        self._call("on_game_over", score, level, lines)

    def on_piece_place(self) -> None:
        self._call("on_piece_place")


class EventDispatcher:
    """Ordered set of listeners."""

    def __init__(self):
        self._listeners: List[GameListener] = []

    def add(self, listener: GameListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove(self, listener: GameListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, name: str, *args: Any) -> None:
        """Invoke hook `name` on every listener in registration order."""
        if name not in EVENT_NAMES:
            raise ValueError(f"Unknown event: {name}")
        for listener in list(self._listeners):
            getattr(listener, name)(*args)

    def __len__(self) -> int:
        return len(self._listeners)
