"""A slot that holds several callbacks and calls them together."""

from __future__ import annotations

from typing import Any, Callable, Optional


class CallbackSlot:
    """Holds callbacks by id and calls every registered one in order."""

    def __init__(self) -> None:
        self._callbacks: list[Optional[Callable[..., Any]]] = []

    def add(self, callback: Callable[..., Any]) -> int:
        """Register a callback and return its id."""
        self._callbacks.append(callback)
        return len(self._callbacks) - 1

    def remove(self, callback_id: int) -> None:
        """Unregister the callback with the given id."""
        if not 0 <= callback_id < len(self._callbacks):
            raise IndexError(f"no callback with id {callback_id}")
        self._callbacks[callback_id] = None

    def __bool__(self) -> bool:
        return any(cb is not None for cb in self._callbacks)

    def call(self, *args: Any) -> None:
        """Call every registered callback with the given arguments."""
        for callback in self._callbacks:
            if callback is not None:
                callback(*args)

    def __call__(self, *args: Any) -> None:
        self.call(*args)