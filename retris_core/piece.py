"""Falling piece state: type, rotation and grid position.

A Tetromino only holds shape and position. It never checks the board;
collision and wall kick resolution belong to the Board and the Game.
"""

from typing import List, NamedTuple, Optional, Tuple, Union

from retris_core.catalog import (
    Kick,
    PieceType,
    Shape,
    get_definition,
    get_rotation,
    get_wall_kicks,
    piece_type_of,
    rotation_count,
)


class Bounds(NamedTuple):
    """Tight bounding box of occupied cells inside a shape matrix."""
    min_col: int
    max_col: int
    min_row: int
    max_row: int


def get_spawn_position(piece_type: Union[str, PieceType]) -> Tuple[int, int]:
    """Get the spawn position for a piece type on a 10-wide board.

    Board coordinates: y=0 is the top row. The I piece starts one row higher
    because its horizontal state sits on the second row of its 4x4 matrix.

    Args:
        piece_type: One of "I", "O", "T", "S", "Z", "J", "L"

    Returns:
        (x, y) of the shape matrix origin
    """
    piece_type = piece_type_of(piece_type)
    x = 4 if piece_type == PieceType.O else 3
    y = -1 if piece_type == PieceType.I else 0
    return (x, y)


class Tetromino:
    """A tetromino at a specific position and rotation."""

    def __init__(
        self,
        piece_type: Union[str, PieceType],
        x: Optional[int] = None,
        y: Optional[int] = None,
        rotation_index: int = 0,
    ):
        """Initialize a piece.

        Args:
            piece_type: One of "I", "O", "T", "S", "Z", "J", "L"
            x: Column of the shape origin (defaults to spawn column)
            y: Row of the shape origin (defaults to spawn row)
            rotation_index: Rotation state
        """
        self.type = piece_type_of(piece_type)
        spawn_x, spawn_y = get_spawn_position(self.type)
        self.x = spawn_x if x is None else x
        self.y = spawn_y if y is None else y
        self.rotation_index = rotation_index % rotation_count(self.type)

    @classmethod
    def spawn(cls, piece_type: Union[str, PieceType]) -> "Tetromino":
        """Create a piece in rotation 0 at its spawn position."""
        return cls(piece_type)

    @property
    def shape(self) -> Shape:
        """Occupancy matrix for the current rotation."""
        return get_rotation(self.type, self.rotation_index)

    @property
    def color(self) -> str:
        return get_definition(self.type).color

    @property
    def rotation_count(self) -> int:
        return rotation_count(self.type)

    def rotation_target(self, direction: int) -> int:
        """Rotation index reached by turning in the given direction.

        Args:
            direction: +1 for clockwise, -1 for counter-clockwise

        Raises:
            ValueError: If direction is not +1 or -1
        """
        if direction not in (1, -1):
            raise ValueError(f"Rotation direction must be 1 or -1, got {direction!r}")
        count = self.rotation_count
        return (self.rotation_index + direction + count) % count

    def rotate(self, direction: int = 1) -> None:
        """Turn the piece in place without any collision check."""
        self.rotation_index = self.rotation_target(direction)

    def get_wall_kicks(self, from_rotation: int, to_rotation: int) -> Tuple[Kick, ...]:
        """Kick candidates for this piece's type and the given transition."""
        return get_wall_kicks(self.type, from_rotation, to_rotation)

    def get_cells(self) -> List[Tuple[int, int]]:
        """Get absolute (x, y) board coordinates of all occupied cells."""
        return [
            (self.x + col, self.y + row)
            for row, line in enumerate(self.shape)
            for col, filled in enumerate(line)
            if filled
        ]

    def get_bounds(self) -> Bounds:
        """Get the occupied-cell bounding box relative to the shape origin."""
        cols = []
        rows = []
        for row, line in enumerate(self.shape):
            for col, filled in enumerate(line):
                if filled:
                    cols.append(col)
                    rows.append(row)
        return Bounds(min(cols), max(cols), min(rows), max(rows))

    def to_dict(self) -> dict:
        """Export piece state for serialization."""
        return {
            "type": self.type.value,
            "x": self.x,
            "y": self.y,
            "rotation": self.rotation_index,
            "color": self.color,
            "cells": [list(cell) for cell in self.get_cells()],
        }

    def __repr__(self) -> str:
        return f"Tetromino({self.type.value}, x={self.x}, y={self.y}, rot={self.rotation_index})"
