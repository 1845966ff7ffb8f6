"""A thread-safe queue with an optional size policy and end-of-data signalling."""

from __future__ import annotations

import sys
import threading
from collections import deque
from dataclasses import dataclass
from typing import Any, Iterable, Optional


@dataclass(frozen=True)
class DataStorePolicy:
    """How many values a queue may hold, and which end is dropped when it overflows."""

    max_size: int = sys.maxsize
    pop_front: bool = True

    @classmethod
    def unlimited(cls) -> "DataStorePolicy":
        """A policy that never drops values."""
        return cls()

    @classmethod
    def upto(cls, max_size: int, pop_front: bool = True) -> "DataStorePolicy":
        """Keep at most ``max_size`` values, dropping the oldest (or newest) ones."""
        if max_size < 0:
            raise ValueError(f"max_size must not be negative, got {max_size}")
        return cls(max_size, pop_front)

    def regulate(self, queue: deque) -> None:
        """Drop values from the queue until it satisfies the policy."""
        if len(queue) < self.max_size:
            return
        drop = queue.popleft if self.pop_front else queue.pop
        for _ in range(len(queue) - self.max_size):
            drop()


class ConcurrentVector:
    """Lock-protected FIFO queue shared between a producer and a consumer thread."""

    def __init__(self, policy: Optional[DataStorePolicy] = None) -> None:
        self._policy = policy if policy is not None else DataStorePolicy.unlimited()
        self._end_of_data = False
        self._cond = threading.Condition()
        self._values: deque = deque()

    def submit_end_of_data(self) -> None:
        """Signal that no more values will arrive and wake up waiting consumers."""
        with self._cond:
            self._end_of_data = True
            self._cond.notify_all()

    def empty(self) -> bool:
        """True if the queue holds no values."""
        with self._cond:
            return not self._values

    def __len__(self) -> int:
        with self._cond:
            return len(self._values)

    def push_back(self, value: Any) -> None:
        """Append a value."""
        with self._cond:
            self._values.append(value)
            self._policy.regulate(self._values)
            self._cond.notify()

    def clear(self) -> None:
        """Remove every value."""
        with self._cond:
            self._values.clear()

    def front(self) -> Any:
        """The oldest value; raises IndexError if the queue is empty."""
        with self._cond:
            if not self._values:
                raise IndexError("front of an empty queue")
            return self._values[0]

    def back(self) -> Any:
        """The newest value; raises IndexError if the queue is empty."""
        with self._cond:
            if not self._values:
                raise IndexError("back of an empty queue")
            return self._values[-1]

    def insert(self, new_values: Iterable[Any]) -> None:
        """Append several values at once."""
        items = list(new_values)
        if not items:
            return
        with self._cond:
            self._values.extend(items)
            self._policy.regulate(self._values)
            self._cond.notify_all()

    def pop(self) -> Any:
        """Remove and return the oldest value, or None if the queue is empty."""
        with self._cond:
            if not self._values:
                return None
            return self._values.popleft()

    def pop_wait(self) -> Any:
        """Remove and return the oldest value, waiting for one to arrive.

        Returns None once the queue is empty and end of data has been signalled.
        """
        with self._cond:
            self._cond.wait_for(lambda: self._values or self._end_of_data)
            if self._values:
                return self._values.popleft()
            return None

    def get_all_and_clear_wait(self) -> list:
        """Take every value, waiting until there is at least one.

        Returns an empty list once end of data has been signalled.
        """
        with self._cond:
            self._cond.wait_for(lambda: self._values or self._end_of_data)
            items = list(self._values)
            self._values.clear()
            return items

    def get_all_and_clear(self) -> list:
        """Take every value without waiting."""
        with self._cond:
            items = list(self._values)
            self._values.clear()
            return items

    def get_and_clear(self, num_max: int) -> list:
        """Take up to ``num_max`` of the oldest values."""
        with self._cond:
            count = min(max(num_max, 0), len(self._values))
            return [self._values.popleft() for _ in range(count)]