"""Protocol data classes for WebSocket communication."""

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional, Literal
from enum import Enum

PROTOCOL_VERSION = "r1.0.0"


class MessageType(str, Enum):
    """WebSocket message types."""
    HELLO = "hello"
    START = "start"
    PAUSE = "pause"
    COMMAND = "command"
    STATE = "state"
    SUBSCRIBE = "subscribe"
    SUBMIT_SCORE = "submit_score"
    EVENT = "event"
    COMMAND_RESULT = "command_result"
    HIGHSCORES = "highscores"
    ERROR = "error"


class Action(str, Enum):
    """Player commands accepted in a `command` message."""
    LEFT = "LEFT"
    RIGHT = "RIGHT"
    SOFT = "SOFT"    # Soft drop (one row)
    HARD = "HARD"    # Hard drop (instant lock)
    CW = "CW"        # Clockwise rotation
    CCW = "CCW"      # Counter-clockwise rotation


@dataclass
class HelloRequest:
    """Client hello message."""
    type: Literal["hello"] = "hello"
    version: str = PROTOCOL_VERSION


@dataclass
class HelloResponse:
    """Server hello response."""
    type: Literal["hello"] = "hello"
    version: str = PROTOCOL_VERSION
    server: str = "retris-core-py"


@dataclass
class StartRequest:
    """Request to start a new game."""
    seed: Optional[int] = None
    type: Literal["start"] = "start"


@dataclass
class PauseRequest:
    """Request to toggle pause."""
    type: Literal["pause"] = "pause"


@dataclass
class CommandRequest:
    """Request to apply a player command."""
    action: str  # LEFT, RIGHT, SOFT, HARD, CW, CCW
    type: Literal["command"] = "command"


@dataclass
class StateRequest:
    """Request for the current game snapshot."""
    type: Literal["state"] = "state"


@dataclass
class SubscribeRequest:
    """Request to stream snapshots at a fixed frame rate."""
    stream: bool = True
    fps: float = 30.0
    type: Literal["subscribe"] = "subscribe"


@dataclass
class SubmitScoreRequest:
    """Request to record the finished game in the high score table."""
    name: str
    type: Literal["submit_score"] = "submit_score"


@dataclass
class StateResponse:
    """Game snapshot."""
    data: Dict[str, Any]  # Snapshot dict from Game.snapshot()
    type: Literal["state"] = "state"


@dataclass
class EventMessage:
    """Engine notification forwarded to the client."""
    name: str  # score_update, level_up, line_clear, game_over, piece_place
    args: List[Any]
    type: Literal["event"] = "event"


@dataclass
class CommandResult:
    """Outcome of a player command."""
    action: str
    ok: bool
    data: Dict[str, Any]
    type: Literal["command_result"] = "command_result"


@dataclass
class HighScoresResponse:
    """Current high score ranking."""
    scores: List[Dict[str, Any]]
    rank: Optional[int] = None
    type: Literal["highscores"] = "highscores"


@dataclass
class ErrorResponse:
    """Error response."""
    code: str
    message: str
    type: Literal["error"] = "error"


class ErrorCode:
    """Standard error codes."""
    INVALID_MESSAGE = "INVALID_MESSAGE"
    INVALID_ACTION = "INVALID_ACTION"
    GAME_NOT_FINISHED = "GAME_NOT_FINISHED"


_REQUESTS = {
    MessageType.HELLO: HelloRequest,
    MessageType.START: StartRequest,
    MessageType.PAUSE: PauseRequest,
    MessageType.COMMAND: CommandRequest,
    MessageType.STATE: StateRequest,
    MessageType.SUBSCRIBE: SubscribeRequest,
    MessageType.SUBMIT_SCORE: SubmitScoreRequest,
}

# Accepted JSON types per request field (None allows null)
_FIELD_TYPES = {
    StartRequest: {"seed": (int, type(None))},
    CommandRequest: {"action": (str,)},
    SubscribeRequest: {"stream": (bool,), "fps": (int, float)},
    SubmitScoreRequest: {"name": (str,)},
}


def _check_field_types(request_cls: type, data: Dict[str, Any]) -> None:
    for field, allowed in _FIELD_TYPES.get(request_cls, {}).items():
        if field not in data:
            continue
        value = data[field]
        # bool is an int subclass; only accept it where bool is listed
        if isinstance(value, bool) and bool not in allowed:
            ok = False
        else:
            ok = isinstance(value, allowed)
        if not ok:
            expected = " or ".join(
                "null" if t is type(None) else t.__name__ for t in allowed
            )
            raise ValueError(
                f"Field '{field}' must be {expected}, got {type(value).__name__}"
            )


def parse_message(data: Dict[str, Any]) -> Any:
    """Parse incoming WebSocket message.

    Args:
        data: JSON message dict

    Returns:
        Parsed message object

    Raises:
        ValueError: If the message type is unknown or fields don't match
            (missing, unexpected or of the wrong JSON type)
    """
    if not isinstance(data, dict):
        raise ValueError("Message must be a JSON object")

    msg_type = data.get("type")
    try:
        request_cls = _REQUESTS[MessageType(msg_type)]
    except (ValueError, KeyError):
        raise ValueError(f"Unknown message type: {msg_type}") from None

    _check_field_types(request_cls, data)

    try:
        return request_cls(**data)
    except TypeError as e:
        raise ValueError(f"Malformed {msg_type} message: {e}") from None


def parse_action(action: str) -> Action:
    """Parse a command action name.

    Raises:
        ValueError: If the action is not recognized
    """
    try:
        return Action(action)
    except ValueError:
        raise ValueError(f"Invalid action: {action}") from None


def to_dict(obj: Any) -> Dict[str, Any]:
    """Convert dataclass to dict for JSON serialization.

    Args:
        obj: Dataclass instance

    Returns:
        Dictionary representation
    """
    return asdict(obj)
