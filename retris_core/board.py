"""Tetris board with collision detection and line clearing."""

from typing import List, Optional, Sequence

from retris_core.catalog import Shape, get_rotation
from retris_core.piece import Tetromino

# A cell is None when empty, otherwise the color of the piece that filled it
Cell = Optional[str]


class Board:
    """Grid of locked cells, rows indexed top to bottom."""

    WIDTH = 10
    HEIGHT = 20

    def __init__(self, width: int = WIDTH, height: int = HEIGHT):
        """Initialize an empty board.

        Args:
            width: Number of columns
            height: Number of rows
        """
        self.width = width
        self.height = height
        self.grid: List[List[Cell]] = self._create_empty_grid()
        # Row indices removed by the last clear_lines() call, for animation
        self.cleared_lines: List[int] = []

    def _create_empty_grid(self) -> List[List[Cell]]:
        return [self._empty_row() for _ in range(self.height)]

    def _empty_row(self) -> List[Cell]:
        return [None] * self.width

    def reset(self) -> None:
        """Clear every cell."""
        self.grid = self._create_empty_grid()
        self.cleared_lines = []

    def get(self, x: int, y: int) -> Cell:
        """Get cell value at column x, row y (None = empty)."""
        return self.grid[y][x]

    def set(self, x: int, y: int, value: Cell) -> None:
        """Set cell value at column x, row y, ignoring out of bounds writes."""
        if self.in_bounds(x, y):
            self.grid[y][x] = value

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def _fits(self, shape: Shape, x: int, y: int) -> bool:
        """Check a shape matrix with its origin at (x, y).

        Cells above the top row are not checked for occupancy so pieces may
        overhang the visible board.
        """
        for row, line in enumerate(shape):
            for col, filled in enumerate(line):
                if not filled:
                    continue
                cell_x = x + col
                cell_y = y + row
                if cell_x < 0 or cell_x >= self.width:
                    return False
                if cell_y >= self.height:
                    return False
                if cell_y >= 0 and self.grid[cell_y][cell_x] is not None:
                    return False
        return True

    def is_valid_position(self, piece: Tetromino, offset_x: int = 0, offset_y: int = 0) -> bool:
        """Check whether a piece fits when shifted by the given offset.

        Args:
            piece: The piece to check
            offset_x: Column offset applied to the piece position
            offset_y: Row offset applied to the piece position

        Returns:
            True if every occupied cell is inside the walls, above the floor
            and not overlapping a locked cell
        """
        return self._fits(piece.shape, piece.x + offset_x, piece.y + offset_y)

    def is_valid_rotation(
        self, piece: Tetromino, new_rotation_index: int, kick_x: int, kick_y: int
    ) -> bool:
        """Check whether the piece fits in another rotation after a kick.

        Args:
            piece: The piece being rotated (not modified)
            new_rotation_index: Target rotation state
            kick_x: Column kick offset
            kick_y: Row kick offset

        Returns:
            True if the rotated, kicked piece fits
        """
        shape = get_rotation(piece.type, new_rotation_index)
        return self._fits(shape, piece.x + kick_x, piece.y + kick_y)

    def place_tetromino(self, piece: Tetromino) -> None:
        """Write the piece color into its cells. Cells above the board are dropped."""
        color = piece.color
        for x, y in piece.get_cells():
            self.set(x, y, color)

    def is_line_full(self, y: int) -> bool:
        return all(cell is not None for cell in self.grid[y])

    def clear_lines(self) -> int:
        """Remove all full rows and shift the rows above them down.

        Returns:
            Number of rows cleared
        """
        self.cleared_lines = []
        kept: List[List[Cell]] = []

        # Bottom to top so cleared_lines lists the lowest row first
        for y in range(self.height - 1, -1, -1):
            if self.is_line_full(y):
                self.cleared_lines.append(y)
            else:
                kept.append(list(self.grid[y]))

        if not self.cleared_lines:
            return 0

        kept.reverse()
        self.grid = [self._empty_row() for _ in self.cleared_lines] + kept
        return len(self.cleared_lines)

    def get_ghost_position(self, piece: Tetromino) -> int:
        """Row the piece would land on if dropped straight down."""
        ghost_y = piece.y
        while self.is_valid_position(piece, 0, ghost_y - piece.y + 1):
            ghost_y += 1
        return ghost_y

    def is_game_over(self, piece: Tetromino) -> bool:
        """True if a freshly spawned piece already overlaps the stack."""
        return not self.is_valid_position(piece)

    def get_column_height(self, x: int) -> int:
        """Get the height of a column (distance from floor to highest block).

        Returns:
            Height (0 = empty column, height = full column)
        """
        for y in range(self.height):
            if self.grid[y][x] is not None:
                return self.height - y
        return 0

    def get_column_heights(self) -> List[int]:
        return [self.get_column_height(x) for x in range(self.width)]

    def get_max_height(self) -> int:
        return max(self.get_column_heights())

    def count_holes_in_column(self, x: int) -> int:
        """Count empty cells below the topmost filled cell of a column."""
        holes = 0
        found_block = False

        for y in range(self.height):
            if self.grid[y][x] is not None:
                found_block = True
            elif found_block:
                holes += 1

        return holes

    def count_holes(self) -> int:
        """Total number of holes across all columns."""
        return sum(self.count_holes_in_column(x) for x in range(self.width))

    def to_list(self) -> List[List[Cell]]:
        """Export the grid as a list of row copies (for serialization)."""
        return [list(row) for row in self.grid]

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[Cell]]) -> "Board":
        """Create a board from a list of rows.

        Args:
            rows: Row-major cell values, all rows the same length

        Raises:
            ValueError: If rows are empty or ragged
        """
        if not rows or not rows[0]:
            raise ValueError("Board needs at least one row and one column")
        width = len(rows[0])
        if any(len(row) != width for row in rows):
            raise ValueError(f"All rows must have {width} cells")
        board = cls(width, len(rows))
        board.grid = [list(row) for row in rows]
        return board
