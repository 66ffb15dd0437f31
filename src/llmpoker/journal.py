"""Append-only JSON-lines event journal."""

from __future__ import annotations

import json
import os
from collections.abc import Iterator
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Self


class EventKind(str, Enum):
    GAME_START = "game_start"
    HAND_START = "hand_start"
    PLAYER_ACTION = "player_action"
    DECISION_FAILURE = "decision_failure"
    END_BETTING_ROUND = "end_betting_round"
    SHOWDOWN = "showdown"
    HAND_END = "hand_end"
    GAME_END = "game_end"


def _to_json(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if isinstance(value, (tuple, set, frozenset)):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def journal_path(directory: str | Path, started_at: datetime) -> Path:
    """``<directory>/2024-05-01T12-30-00.jsonl`` for a run started at that time."""
    stamp = started_at.replace(microsecond=0, tzinfo=None).isoformat().replace(":", "-")
    return Path(directory) / f"{stamp}.jsonl"


class EventLog:
    """Single-writer journal. Each record is on disk before ``emit`` returns."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file = self.path.open("a", encoding="utf-8")
        self.count = 0

    def emit(self, kind: EventKind | str, /, **payload: Any) -> dict[str, Any]:
        """Append one record and return it as written."""
        if self._file.closed:
            raise ValueError(f"Journal {self.path} is closed")
        line = json.dumps({"event": EventKind(kind).value, **payload}, default=_to_json)
        self._file.write(line + "\n")
        self._file.flush()
        os.fsync(self._file.fileno())
        self.count += 1
        return json.loads(line)

    def close(self) -> None:
        self._file.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def read_events(path: str | Path) -> Iterator[dict[str, Any]]:
    """Yield journal records in the order they were written."""
    with Path(path).open(encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError as e:
                raise ValueError(f"{path}:{line_number}: corrupt journal record: {e}") from e
