"""Single-instance wiring of the portal stores."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import date
from typing import Callable, Generic, Optional, TypeVar

from smarthub.config import Settings
from smarthub.directory import Directory
from smarthub.events import EventCalendar
from smarthub.sample_data import populate_sample_events, sample_accounts
from smarthub.storage import load_state, save_state

T = TypeVar("T")

logger = logging.getLogger("smarthub.services")


class Lazy(Generic[T]):
    """Construct a value on first access, exactly once, even under concurrent access."""

    def __init__(self, factory: Callable[[], T]) -> None:
        self._factory = factory
        self._value: Optional[T] = None
        self._created = False
        self._lock = threading.Lock()

    def get(self) -> T:
        if not self._created:
            with self._lock:
                if not self._created:
                    self._value = self._factory()
                    self._created = True
        return self._value  # type: ignore[return-value]

    @property
    def created(self) -> bool:
        return self._created


_directory: Lazy[Directory] = Lazy(Directory)
_calendar: Lazy[EventCalendar] = Lazy(EventCalendar)


def get_directory() -> Directory:
    """Process-wide Directory, created by the first caller."""
    return _directory.get()


def get_calendar() -> EventCalendar:
    """Process-wide Event Calendar, created by the first caller."""
    return _calendar.get()


@dataclass
class Services:
    """Stores constructed once at process start and handed to consumers."""

    settings: Settings
    directory: Directory
    calendar: EventCalendar

    def save(self) -> None:
        save_state(self.directory.accounts(), self.calendar.events(), self.settings.state_path)


def build_services(settings: Settings, *, seed: bool = True, today: Optional[date] = None) -> Services:
    """
    Build the stores from the state file.

    Without a usable state file and with seed=True the demo accounts and
    events are loaded instead.
    """
    state = load_state(settings.state_path)

    if state.is_empty and seed:
        logger.info("No saved state at %s, loading sample data", settings.state_path)
        directory = Directory(sample_accounts())
        calendar = EventCalendar()
        populate_sample_events(calendar, today=today)
    else:
        directory = Directory(state.accounts)
        calendar = EventCalendar(state.events)

    return Services(settings=settings, directory=directory, calendar=calendar)


__all__ = ["Lazy", "Services", "build_services", "get_calendar", "get_directory"]
