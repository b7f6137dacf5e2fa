"""Scoring, level progression, gravity speed curve and lock delay."""

# Classic Nintendo line clear points, multiplied by the current level
LINE_CLEAR_POINTS = {
    1: 40,    # Single
    2: 100,   # Double
    3: 300,   # Triple
    4: 1200,  # Tetris
}
SOFT_DROP_POINTS = 1   # Per cell
HARD_DROP_POINTS = 2   # Per cell

LINES_PER_LEVEL = 10

# Milliseconds per gravity step, keyed by 0-based level (frames at 60fps)
# Levels between keys use the nearest lower key.
SPEED_CURVE = {
    0: 800,   # 48 frames
    1: 717,   # 43 frames
    2: 633,   # 38 frames
    3: 550,   # 33 frames
    4: 467,   # 28 frames
    5: 383,   # 23 frames
    6: 300,   # 18 frames
    7: 217,   # 13 frames
    8: 133,   # 8 frames
    9: 100,   # 6 frames
    10: 83,   # 10-12: 5 frames
    13: 67,   # 13-15: 4 frames
    16: 50,   # 16-18: 3 frames
    19: 33,   # 19-28: 2 frames
    29: 17,   # 29+: 1 frame
}


def calculate_score(lines_cleared: int, level: int = 1) -> int:
    """Calculate score from lines cleared at once.

    Args:
        lines_cleared: Number of lines cleared simultaneously
        level: Current level multiplier

    Returns:
        Score points (0 for counts outside 1-4)
    """
    return LINE_CLEAR_POINTS.get(lines_cleared, 0) * level


def level_for_lines(lines: int) -> int:
    """Level reached after clearing the given total of lines."""
    return lines // LINES_PER_LEVEL + 1


def drop_interval_ms(level: int) -> int:
    """Gravity period for a 1-based level, floored at the fastest tier."""
    index = max(0, level - 1)
    tier = max(key for key in SPEED_CURVE if key <= index)
    return SPEED_CURVE[tier]


class LockDelay:
    """Lock delay state for a grounded piece.

    A delay of 0 means pieces lock as soon as gravity fails to move them.
    """

    def __init__(self, delay_ms: int = 0):
        """Initialize lock delay.

        Args:
            delay_ms: Grace period before a grounded piece locks
        """
        if delay_ms < 0:
            raise ValueError(f"Lock delay must be >= 0, got {delay_ms}")
        self.delay_ms = delay_ms
        self.active = False

    @property
    def enabled(self) -> bool:
        return self.delay_ms > 0

    def arm(self) -> None:
        """Mark the piece as locking."""
        self.active = True

    def reset(self) -> None:
        """Clear the locking flag."""
        self.active = False
