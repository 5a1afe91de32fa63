"""Error types raised or reported by the annual clustering pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Hashable, Sequence


class MalformedDateError(ValueError):
    """An acquisition date does not split into year, month and day."""

    def __init__(self, column: str, rows: Sequence[Hashable], values: Sequence[object]) -> None:
        self.column = column
        self.rows = list(rows)
        self.values = list(values)
        preview = ", ".join(f"{row}={value!r}" for row, value in zip(self.rows[:5], self.values[:5]))
        if len(self.rows) > 5:
            preview += " ..."
        super().__init__(
            f"{len(self.rows)} malformed value(s) in '{column}', expected YYYY-MM-DD: {preview}"
        )


class ReprojectionError(ValueError):
    """Coordinates could not be transformed between reference systems."""


@dataclass(frozen=True)
class YearFailure:
    """Captured clustering failure for a single acquisition year."""

    year: int
    message: str
    error_type: str = "Exception"
