"""In-process observable value pushed to subscribers on every publish."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Generic, List, TypeVar

T = TypeVar("T")

logger = logging.getLogger("smarthub.observable")


class Observable(Generic[T]):
    """Hold the current snapshot and broadcast replacements synchronously.

    ``publish`` assigns the new value first and then calls every subscriber
    registered at that moment, in subscription order, before returning.
    """

    def __init__(self, initial: T) -> None:
        self._value = initial
        self._subscribers: List[Callable[[T], None]] = []
        self._lock = threading.RLock()

    @property
    def value(self) -> T:
        return self._value

    def subscribe(self, callback: Callable[[T], None], *, replay: bool = False) -> Callable[[], None]:
        """Register ``callback`` and return a function that unregisters it."""

        with self._lock:
            self._subscribers.append(callback)
            if replay:
                self._deliver(callback, self._value)

        def unsubscribe() -> None:
            with self._lock:
                try:
                    self._subscribers.remove(callback)
                except ValueError:
                    pass

        return unsubscribe

    def publish(self, value: T) -> None:
        with self._lock:
            self._value = value
            subscribers = list(self._subscribers)
            for callback in subscribers:
                self._deliver(callback, value)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def _deliver(self, callback: Callable[[T], None], value: T) -> None:
        try:
            callback(value)
        except Exception:
            logger.exception("Snapshot subscriber %r failed", callback)


__all__ = ["Observable"]
