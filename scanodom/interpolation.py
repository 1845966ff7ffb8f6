"""Find the pair of stamped values that brackets a target time in a data stream."""

from __future__ import annotations

import bisect
import enum
import logging
from dataclasses import dataclass
from typing import Any, Optional

_logger = logging.getLogger("scanodom.interpolation")

StampedValue = tuple[float, Any]


class InterpolationResult(enum.Enum):
    """Outcome of a search."""

    SUCCESS = "success"
    FAILURE = "failure"
    WAITING = "waiting"


class SearchMode(enum.Enum):
    """How the bracketing values are searched for."""

    LINEAR = "linear"
    BINARY = "binary"


@dataclass(frozen=True)
class InterpolationSearch:
    """Result of a search: the status and, on success, the bracketing values."""

    result: InterpolationResult
    left: Optional[StampedValue] = None
    right: Optional[StampedValue] = None
    remove_cursor: Optional[int] = None


class InterpolationHelper:
    """Queue of time-ordered values searchable by timestamp."""

    def __init__(self, search_mode: SearchMode = SearchMode.LINEAR) -> None:
        self._search_mode = search_mode
        self._values: list[StampedValue] = []

    def empty(self) -> bool:
        """True if no values are queued."""
        return not self._values

    def __len__(self) -> int:
        return len(self._values)

    def leftmost_time(self) -> float:
        """Oldest timestamp, or 0.0 when empty."""
        return self._values[0][0] if self._values else 0.0

    def rightmost_time(self) -> float:
        """Newest timestamp, or 0.0 when empty."""
        return self._values[-1][0] if self._values else 0.0

    def add(self, stamp: float, value: Any) -> None:
        """Append a value; values older than the newest one are ignored."""
        if self._values and self._values[-1][0] > stamp:
            _logger.warning("inserting non-ordered values!!")
            return
        self._values.append((stamp, value))

    def find(self, stamp: float) -> InterpolationSearch:
        """Find the values just before and just after ``stamp``.

        WAITING means every value is older than ``stamp``, FAILURE that every
        value is newer. On SUCCESS ``remove_cursor`` is the index of the value
        before the left one.
        """
        values = self._values
        if not values or values[-1][0] < stamp:
            return InterpolationSearch(InterpolationResult.WAITING)
        if values[0][0] > stamp:
            return InterpolationSearch(InterpolationResult.FAILURE)

        if self._search_mode is SearchMode.LINEAR:
            right = 1
            while right < len(values) and values[right][0] < stamp:
                right += 1
        else:
            right = bisect.bisect_left(values, stamp, key=lambda item: item[0])

        left = right - 1
        if left < 0 or right >= len(values) or values[left][0] > stamp or values[right][0] < stamp:
            raise RuntimeError(f"invalid interpolation condition for stamp {stamp}")

        return InterpolationSearch(
            InterpolationResult.SUCCESS,
            left=values[left],
            right=values[right],
            remove_cursor=left - 1,
        )

    def erase(self, remove_cursor: int) -> None:
        """Drop the ``remove_cursor`` oldest values."""
        if remove_cursor <= 0:
            return
        del self._values[:remove_cursor]