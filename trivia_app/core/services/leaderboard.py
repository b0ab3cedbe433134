"""Durable cross-session leaderboard stored as a JSON document."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
import logging
import os
from pathlib import Path
import tempfile
from threading import Lock

from pydantic import BaseModel, Field, ValidationError

from trivia_app.core.errors import PersistenceError
from trivia_app.core.models import ScoreRow

logger = logging.getLogger(__name__)


class LeaderboardDocument(BaseModel):
    """On-disk schema of the leaderboard file."""

    scores: dict[str, int] = Field(default_factory=dict)
    updated_at: datetime | None = None


class Leaderboard:
    """Cumulative points per identity across quiz sessions.

    ``update`` builds the new mapping aside, writes it to a temporary file
    next to the target and renames it over the old file. The in-memory
    mapping is replaced only after the rename succeeded, so memory and disk
    always agree.
    """

    def __init__(self, path: Path, scores: Mapping[str, int] | None = None) -> None:
        self._path = Path(path)
        self._scores: dict[str, int] = dict(scores or {})
        self._updated_at: datetime | None = None
        self._lock = Lock()

    @classmethod
    def load(cls, path: Path | str) -> "Leaderboard":
        """Read the persisted leaderboard. A missing or empty file yields an empty board."""
        path = Path(path)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info("No leaderboard at %s, starting empty", path)
            return cls(path)
        except OSError as exc:
            raise PersistenceError(f"Failed to read leaderboard at {path}: {exc}") from exc

        if not raw.strip():
            return cls(path)
        try:
            document = LeaderboardDocument.model_validate_json(raw)
        except ValidationError as exc:
            raise PersistenceError(f"Leaderboard at {path} is corrupt: {exc}") from exc

        board = cls(path, document.scores)
        board._updated_at = document.updated_at
        logger.info("Loaded leaderboard with %d entries from %s", len(document.scores), path)
        return board

    @property
    def path(self) -> Path:
        return self._path

    @property
    def updated_at(self) -> datetime | None:
        return self._updated_at

    def update(self, delta: Mapping[str, int] | Iterable[ScoreRow]) -> None:
        """Add ``delta`` to the cumulative totals and persist the full mapping."""
        if not isinstance(delta, Mapping):
            delta = {row.identity: row.points for row in delta}
        with self._lock:
            merged = dict(self._scores)
            for identity, points in delta.items():
                merged[identity] = merged.get(identity, 0) + points
            updated_at = datetime.now(timezone.utc)
            self._write(LeaderboardDocument(scores=merged, updated_at=updated_at))
            self._scores = merged
            self._updated_at = updated_at
        logger.info("Leaderboard updated for %d identities", len(delta))

    def get(self, identity: str) -> int:
        with self._lock:
            return self._scores.get(identity, 0)

    def scores(self) -> dict[str, int]:
        with self._lock:
            return dict(self._scores)

    def top(self, limit: int = 10) -> list[ScoreRow]:
        """Return the top ``limit`` identities by points, ties by identity."""
        with self._lock:
            rows = [ScoreRow(identity=k, points=v) for k, v in self._scores.items()]
        rows.sort(key=lambda row: (-row.points, row.identity))
        return rows[:limit]

    def __len__(self) -> int:
        with self._lock:
            return len(self._scores)

    def _write(self, document: LeaderboardDocument) -> None:
        payload = document.model_dump_json(indent=2)
        tmp_name: str | None = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                tmp_name = handle.name
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self._path)
            tmp_name = None
        except OSError as exc:
            logger.error("Failed to persist leaderboard to %s: %s", self._path, exc)
            raise PersistenceError(f"Failed to write leaderboard to {self._path}: {exc}") from exc
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
