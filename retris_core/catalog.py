"""Tetromino catalog: shapes, colors and SRS wall kick tables.

Each piece type owns an ordered list of rotation states. A rotation state is a
square occupancy matrix (4x4 for I, 2x2 for O, 3x3 for the rest), indexed as
shape[row][col], rows top to bottom.

All tables in this module are read-only and shared process-wide.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Tuple, Union

# Type aliases
Shape = Tuple[Tuple[int, ...], ...]
Kick = Tuple[int, int]


class PieceType(str, Enum):
    """The seven tetromino tags."""
    I = "I"
    O = "O"
    T = "T"
    S = "S"
    Z = "Z"
    J = "J"
    L = "L"


@dataclass(frozen=True)
class PieceDefinition:
    """Static description of one piece type."""
    color: str
    rotations: Tuple[Shape, ...]


# Rotation states: 0=spawn, 1=R, 2=2, 3=L
TETROMINOES: Mapping[PieceType, PieceDefinition] = MappingProxyType({
    PieceType.I: PieceDefinition(
        color="#00d4d4",
        rotations=(
            ((0, 0, 0, 0), (1, 1, 1, 1), (0, 0, 0, 0), (0, 0, 0, 0)),
            ((0, 0, 1, 0), (0, 0, 1, 0), (0, 0, 1, 0), (0, 0, 1, 0)),
            ((0, 0, 0, 0), (0, 0, 0, 0), (1, 1, 1, 1), (0, 0, 0, 0)),
            ((0, 1, 0, 0), (0, 1, 0, 0), (0, 1, 0, 0), (0, 1, 0, 0)),
        ),
    ),
    PieceType.O: PieceDefinition(
        color="#d4a800",
        rotations=(
            ((1, 1), (1, 1)),  # Single state, O never rotates
        ),
    ),
    PieceType.T: PieceDefinition(
        color="#8833cc",
        rotations=(
            ((0, 1, 0), (1, 1, 1), (0, 0, 0)),
            ((0, 1, 0), (0, 1, 1), (0, 1, 0)),
            ((0, 0, 0), (1, 1, 1), (0, 1, 0)),
            ((0, 1, 0), (1, 1, 0), (0, 1, 0)),
        ),
    ),
    PieceType.S: PieceDefinition(
        color="#00cc44",
        rotations=(
            ((0, 1, 1), (1, 1, 0), (0, 0, 0)),
            ((0, 1, 0), (0, 1, 1), (0, 0, 1)),
            ((0, 0, 0), (0, 1, 1), (1, 1, 0)),
            ((1, 0, 0), (1, 1, 0), (0, 1, 0)),
        ),
    ),
    PieceType.Z: PieceDefinition(
        color="#cc3333",
        rotations=(
            ((1, 1, 0), (0, 1, 1), (0, 0, 0)),
            ((0, 0, 1), (0, 1, 1), (0, 1, 0)),
            ((0, 0, 0), (1, 1, 0), (0, 1, 1)),
            ((0, 1, 0), (1, 1, 0), (1, 0, 0)),
        ),
    ),
    PieceType.J: PieceDefinition(
        color="#3366cc",
        rotations=(
            ((1, 0, 0), (1, 1, 1), (0, 0, 0)),
            ((0, 1, 1), (0, 1, 0), (0, 1, 0)),
            ((0, 0, 0), (1, 1, 1), (0, 0, 1)),
            ((0, 1, 0), (0, 1, 0), (1, 1, 0)),
        ),
    ),
    PieceType.L: PieceDefinition(
        color="#cc6600",
        rotations=(
            ((0, 0, 1), (1, 1, 1), (0, 0, 0)),
            ((0, 1, 0), (0, 1, 0), (0, 1, 1)),
            ((0, 0, 0), (1, 1, 1), (1, 0, 0)),
            ((1, 1, 0), (0, 1, 0), (0, 1, 0)),
        ),
    ),
})

# SRS wall kick data, keyed by "<from>-><to>"
# Offsets are (dx, dy) in grid terms: +x is right, +y is down.
# Reference: https://tetris.wiki/Super_Rotation_System
WALL_KICKS: Mapping[str, Mapping[str, Tuple[Kick, ...]]] = MappingProxyType({
    "JLSTZ": MappingProxyType({
        "0->1": ((0, 0), (-1, 0), (-1, 1), (0, -2), (-1, -2)),
        "1->2": ((0, 0), (1, 0), (1, -1), (0, 2), (1, 2)),
        "2->3": ((0, 0), (1, 0), (1, 1), (0, -2), (1, -2)),
        "3->0": ((0, 0), (-1, 0), (-1, -1), (0, 2), (-1, 2)),
        "1->0": ((0, 0), (1, 0), (1, 1), (0, -2), (1, -2)),
        "2->1": ((0, 0), (-1, 0), (-1, -1), (0, 2), (-1, 2)),
        "3->2": ((0, 0), (-1, 0), (-1, 1), (0, -2), (-1, -2)),
        "0->3": ((0, 0), (1, 0), (1, -1), (0, 2), (1, 2)),
    }),
    "I": MappingProxyType({
        "0->1": ((0, 0), (-2, 0), (1, 0), (-2, -1), (1, 2)),
        "1->2": ((0, 0), (-1, 0), (2, 0), (-1, 2), (2, -1)),
        "2->3": ((0, 0), (2, 0), (-1, 0), (2, 1), (-1, -2)),
        "3->0": ((0, 0), (1, 0), (-2, 0), (1, -2), (-2, 1)),
        "1->0": ((0, 0), (2, 0), (-1, 0), (2, 1), (-1, -2)),
        "2->1": ((0, 0), (1, 0), (-2, 0), (1, -2), (-2, 1)),
        "3->2": ((0, 0), (-2, 0), (1, 0), (-2, -1), (1, 2)),
        "0->3": ((0, 0), (-1, 0), (2, 0), (-1, 2), (2, -1)),
    }),
})

NO_KICK: Tuple[Kick, ...] = ((0, 0),)


def piece_type_of(value: Union[str, PieceType]) -> PieceType:
    """Coerce a tag such as "T" into a PieceType.

    Raises:
        ValueError: If the tag is not one of the seven piece types
    """
    try:
        return PieceType(value)
    except ValueError:
        raise ValueError(f"Invalid piece type: {value!r}") from None


def get_definition(piece_type: Union[str, PieceType]) -> PieceDefinition:
    """Look up the catalog entry for a piece type."""
    return TETROMINOES[piece_type_of(piece_type)]


def rotation_count(piece_type: Union[str, PieceType]) -> int:
    """Number of distinct rotation states (1 for O, 4 otherwise)."""
    return len(get_definition(piece_type).rotations)


def get_rotation(piece_type: Union[str, PieceType], index: int) -> Shape:
    """Get the shape matrix for a rotation index (wraps around)."""
    rotations = get_definition(piece_type).rotations
    return rotations[index % len(rotations)]


def get_wall_kicks(
    piece_type: Union[str, PieceType], from_rotation: int, to_rotation: int
) -> Tuple[Kick, ...]:
    """Get the ordered kick candidates for a rotation transition.

    Args:
        piece_type: Piece being rotated
        from_rotation: Current rotation index
        to_rotation: Target rotation index

    Returns:
        Tuple of (dx, dy) offsets to try in order. O pieces and unknown
        transitions yield a single zero offset.
    """
    piece_type = piece_type_of(piece_type)
    if piece_type == PieceType.O:
        return NO_KICK

    table = WALL_KICKS["I"] if piece_type == PieceType.I else WALL_KICKS["JLSTZ"]
    return table.get(f"{from_rotation}->{to_rotation}", NO_KICK)
