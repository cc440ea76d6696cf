"""Observable channels used to hand query results back to callers.

`StateChannel` keeps only the latest value and skips publishes that would
not change it. `EventChannel` delivers each event once and keeps nothing.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Generic, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Unsubscribe = Callable[[], None]


class _Subscribers(Generic[T]):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[T], None]] = []

    def add(self, callback: Callable[[T], None]) -> Unsubscribe:
        with self._lock:
            self._callbacks.append(callback)

        def _remove() -> None:
            with self._lock:
                try:
                    self._callbacks.remove(callback)
                except ValueError:
                    pass

        return _remove

    def notify(self, value: T) -> None:
        with self._lock:
            callbacks = list(self._callbacks)
        for callback in callbacks:
            try:
                callback(value)
            except Exception:
                # One broken subscriber must not starve the others
                logger.exception("Channel subscriber %r failed", callback)


class StateChannel(Generic[T]):
    """Holds the latest published value.

    Parameters
    ----------
    initial: T
        Value reported before anything is published.
    key: Callable[[T], Any] | None
        Projection used to decide whether a new value differs from the
        current one. Defaults to the value itself.
    """

    def __init__(self, initial: T, *, key: Optional[Callable[[T], Any]] = None) -> None:
        self._value = initial
        self._key = key or (lambda value: value)
        self._subscribers: _Subscribers[T] = _Subscribers()
        self._publish_count = 0

    @property
    def value(self) -> T:
        return self._value

    @property
    def publish_count(self) -> int:
        """Number of publishes that actually changed the value."""
        return self._publish_count

    def subscribe(self, callback: Callable[[T], None]) -> Unsubscribe:
        """Call ``callback`` with every new value; returns an unsubscribe function."""
        return self._subscribers.add(callback)

    def publish(self, value: T) -> bool:
        """Replace the current value. Returns False when it is unchanged."""
        if self._key(value) == self._key(self._value):
            return False
        self._value = value
        self._publish_count += 1
        self._subscribers.notify(value)
        return True


class EventChannel(Generic[T]):
    """Fan-out of one-shot events, e.g. failures."""

    def __init__(self) -> None:
        self._subscribers: _Subscribers[T] = _Subscribers()

    def subscribe(self, callback: Callable[[T], None]) -> Unsubscribe:
        return self._subscribers.add(callback)

    def emit(self, event: T) -> None:
        self._subscribers.notify(event)
