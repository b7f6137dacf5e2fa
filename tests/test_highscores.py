"""Tests for the high score table."""

import json
import logging

from retris_core.highscores import HighScoreTable, sanitize_name


def test_scores_ranked_highest_first():
    """Test entries are kept in descending score order."""
    table = HighScoreTable()
    table.save_score("ann", 300, 2)
    table.save_score("bob", 900, 4)
    scores = table.save_score("cid", 500, 3)

    assert [e.name for e in scores] == ["bob", "cid", "ann"]
    assert table.get_highest_score() == 900


def test_capacity_keeps_top_entries():
    """Test only the best entries survive."""
    table = HighScoreTable(capacity=3)
    for score in (10, 50, 20, 40, 30):
        table.save_score("p", score, 1)

    assert [e.score for e in table.get_scores()] == [50, 40, 30]


def test_is_high_score():
    """Test qualification for the table."""
    table = HighScoreTable(capacity=2)
    assert table.is_high_score(1)
    assert not table.is_high_score(0), "Zero never qualifies"

    table.save_score("a", 100, 1)
    table.save_score("b", 200, 1)
    assert not table.is_high_score(100)
    assert table.is_high_score(101)


def test_get_rank():
    """Test rank prediction for a new score."""
    table = HighScoreTable()
    assert table.get_rank(10) == 1

    table.save_score("a", 300, 1)
    table.save_score("b", 100, 1)
    assert table.get_rank(400) == 1
    assert table.get_rank(200) == 2
    assert table.get_rank(100) == 3, "Ties rank below existing entries"


def test_name_sanitizing():
    """Test names are trimmed, truncated and escaped."""
    assert sanitize_name("  alice  ") == "alice"
    assert sanitize_name("abcdefghijklmnop") == "abcdefghijkl"
    assert sanitize_name("   ") == "Player"
    assert sanitize_name("<b>") == "&lt;b&gt;"


def test_persistence(tmp_path):
    """Test entries survive in the JSON file."""
    path = tmp_path / "scores.json"
    HighScoreTable(path).save_score("ann", 120, 2)

    reloaded = HighScoreTable(path)
    scores = reloaded.get_scores()
    assert len(scores) == 1
    assert (scores[0].name, scores[0].score, scores[0].level) == ("ann", 120, 2)
    assert json.loads(path.read_text())[0]["score"] == 120


def test_clear_scores(tmp_path):
    """Test clearing removes the file."""
    path = tmp_path / "scores.json"
    table = HighScoreTable(path)
    table.save_score("ann", 120, 2)

    table.clear_scores()
    assert not path.exists()
    assert table.get_scores() == []
    table.clear_scores()  # Already gone, no error


def test_corrupt_file_degrades_to_empty(tmp_path, caplog):
    """Test unreadable data is logged and ignored."""
    path = tmp_path / "scores.json"
    path.write_text("{not json")

    with caplog.at_level(logging.WARNING):
        assert HighScoreTable(path).get_scores() == []
    assert "Could not read high scores" in caplog.text
