"""Observable values used to bind controller state to the UI.

``Observable`` holds a single value and calls its observers whenever the
value is replaced.  ``Observable.map`` derives a read-only value that is
recomputed every time its source changes.  ``OneShotEvent`` is a
single-slot notification the UI consumes once and then acknowledges.
"""
from __future__ import annotations

from typing import Any, Callable, Generic, List, Optional, TypeVar


T = TypeVar("T")
R = TypeVar("R")


class Observable(Generic[T]):
    """A value with change observers."""

    def __init__(self, value: T = None) -> None:  # type: ignore[assignment]
        self._value = value
        self._observers: List[Callable[[T], None]] = []

    @property
    def value(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        self._value = value
        for observer in list(self._observers):
            observer(value)

    def observe(self, observer: Callable[[T], None]) -> Callable[[], None]:
        """
        Call ``observer`` with the current value and on every later change.

        Returns a function that removes the observer again.
        """
        self._observers.append(observer)
        observer(self._value)

        def remove() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return remove

    def map(self, fn: Callable[[T], R]) -> "Observable[R]":
        """Return an observable whose value is always ``fn(self.value)``."""
        derived: Observable[R] = Observable(fn(self._value))
        self._observers.append(lambda value: derived.set(fn(value)))
        return derived


class OneShotEvent(Observable[Any]):
    """
    A pending notification delivered at most once.

    ``emit`` fills the slot and notifies observers.  The consumer either
    calls ``consume`` (read and clear in one step) or reads ``value`` and
    later calls ``done``.  Either way the slot returns to its neutral value
    so re-observing, e.g. after the window is rebuilt, does not fire again.
    """

    def __init__(self, neutral: Any = None) -> None:
        super().__init__(neutral)
        self.neutral = neutral

    @property
    def pending(self) -> bool:
        return self._value != self.neutral

    def emit(self, payload: Any) -> None:
        self.set(payload)

    def done(self) -> None:
        self.set(self.neutral)

    def consume(self) -> Optional[Any]:
        """Return the pending payload and reset the slot, or ``None``."""
        if not self.pending:
            return None
        payload = self._value
        # Reset without notifying; the caller already holds the payload.
        self._value = self.neutral
        return payload
