"""7-bag randomizer for Tetris pieces.

The 7-bag system ensures fair piece distribution by shuffling all 7 pieces
into a bag, dealing them out, then reshuffling for the next bag.
"""

import random
from typing import List, Optional

from retris_core.catalog import PieceType


class BagRandomizer:
    """Shuffled-without-replacement piece generator."""

    PIECES = list(PieceType)

    def __init__(self, seed: Optional[int] = None):
        """Initialize the bag.

        Args:
            seed: Random seed for reproducible sequences (None = system entropy)
        """
        self.seed = seed
        self.rng = random.Random(seed)
        self.bag: List[PieceType] = []
        self._refill_bag()

    def _refill_bag(self) -> None:
        """Shuffle all 7 pieces into the bag (Fisher-Yates via random.shuffle)."""
        self.bag = self.PIECES.copy()
        self.rng.shuffle(self.bag)

    def next(self) -> PieceType:
        """Remove and return the next piece from the bag."""
        if not self.bag:
            self._refill_bag()
        return self.bag.pop()

    def peek(self) -> PieceType:
        """Return the next piece without consuming it."""
        if not self.bag:
            self._refill_bag()
        return self.bag[-1]
