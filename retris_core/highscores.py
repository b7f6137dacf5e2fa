"""Ranked high score table, optionally persisted as a JSON file.

The table is independent of the engine: callers feed it final results
(e.g. from on_game_over) and read the ranking back.
"""

import html
import json
import logging
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 12
DEFAULT_NAME = "Player"


@dataclass
class HighScoreEntry:
    """One ranked result."""
    id: str
    name: str
    score: int
    level: int
    date: str  # ISO 8601, UTC


def sanitize_name(name: str) -> str:
    """Trim, truncate and HTML-escape a player name."""
    return html.escape(name.strip()[:MAX_NAME_LENGTH]) or DEFAULT_NAME


class HighScoreTable:
    """Top-N list of scores, highest first."""

    def __init__(self, path: Optional[Union[str, Path]] = None, capacity: int = 10):
        """Initialize the table.

        Args:
            path: JSON file to persist to (None = keep in memory only)
            capacity: Number of entries kept
        """
        self.path = Path(path) if path is not None else None
        self.capacity = capacity
        self._entries: List[HighScoreEntry] = []

    def get_scores(self) -> List[HighScoreEntry]:
        """Return all stored entries, highest score first."""
        if self.path is None:
            return list(self._entries)

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return [HighScoreEntry(**item) for item in data]
        except FileNotFoundError:
            return []
        except (OSError, ValueError, TypeError) as e:
            logger.warning("Could not read high scores from %s: %s", self.path, e)
            return []

    def _write(self, entries: List[HighScoreEntry]) -> None:
        self._entries = list(entries)
        if self.path is None:
            return

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                json.dumps([asdict(entry) for entry in entries], indent=2),
                encoding="utf-8",
            )
        except OSError as e:
            logger.warning("Could not save high scores to %s: %s", self.path, e)

    def save_score(self, name: str, score: int, level: int) -> List[HighScoreEntry]:
        """Record a result and return the updated ranking.

        Args:
            name: Player name (trimmed to 12 characters, "Player" if empty)
            score: Final score
            level: Final level

        Returns:
            The top entries after insertion
        """
        entry = HighScoreEntry(
            id=uuid.uuid4().hex,
            name=sanitize_name(name),
            score=score,
            level=level,
            date=datetime.now(timezone.utc).isoformat(),
        )

        scores = self.get_scores()
        scores.append(entry)
        # Stable sort keeps earlier entries ahead on ties
        scores.sort(key=lambda e: e.score, reverse=True)
        top_scores = scores[: self.capacity]

        self._write(top_scores)
        logger.info("Saved high score %d for %s", score, entry.name)
        return top_scores

    def is_high_score(self, score: int) -> bool:
        """Check whether a score would enter the table."""
        scores = self.get_scores()
        if len(scores) < self.capacity:
            return score > 0
        return score > scores[-1].score

    def get_rank(self, score: int) -> int:
        """1-based rank a score would take if saved now."""
        rank = 1
        for entry in self.get_scores():
            if score > entry.score:
                break
            rank += 1
        return rank

    def get_highest_score(self) -> int:
        scores = self.get_scores()
        return scores[0].score if scores else 0

    def clear_scores(self) -> None:
        """Remove every entry (and the backing file)."""
        self._entries = []
        if self.path is None:
            return

        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Could not clear high scores at %s: %s", self.path, e)
