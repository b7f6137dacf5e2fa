"""Tests for the 7-bag randomizer."""

from retris_core.catalog import PieceType
from retris_core.rng import BagRandomizer

ALL_TYPES = sorted(t.value for t in PieceType)


def test_bag_deterministic():
    """Test that same seed produces same sequence."""
    rng1 = BagRandomizer(12345)
    rng2 = BagRandomizer(12345)

    sequence1 = [rng1.next() for _ in range(21)]  # 3 full bags
    sequence2 = [rng2.next() for _ in range(21)]

    assert sequence1 == sequence2, "Same seed should produce identical sequences"


def test_each_bag_contains_all_pieces():
    """Test that every aligned group of 7 draws holds each type once."""
    rng = BagRandomizer(42)

    for _ in range(10):
        bag = [rng.next().value for _ in range(7)]
        assert sorted(bag) == ALL_TYPES


def test_no_type_repeats_within_a_bag():
    """Test there is no drought longer than two bags."""
    rng = BagRandomizer(7)
    draws = [rng.next() for _ in range(70)]

    for piece_type in PieceType:
        positions = [i for i, t in enumerate(draws) if t == piece_type]
        gaps = [b - a for a, b in zip(positions, positions[1:])]
        assert max(gaps) <= 13, f"{piece_type} gap too long: {gaps}"


def test_peek_does_not_consume():
    """Test peeking matches the next draw."""
    rng = BagRandomizer(999)

    for _ in range(15):
        peeked = rng.peek()
        assert rng.peek() == peeked, "Peek should be stable"
        assert rng.next() == peeked, "Peek should match actual draw"


def test_peek_refills_empty_bag():
    """Test peek refills the bag at a boundary."""
    rng = BagRandomizer(3)
    for _ in range(7):
        rng.next()

    assert rng.bag == [], "Bag should be exhausted"
    peeked = rng.peek()
    assert len(rng.bag) == 7
    assert rng.next() == peeked
