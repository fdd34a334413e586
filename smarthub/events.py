"""
Event Calendar: the in-memory registry of scheduled events.

The full event list is exposed as an observable snapshot (all_events) that is
re-published synchronously after every successful add, update, or delete.

Not-found conditions are reported as None / False, never raised.
"""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import date, datetime
from typing import Callable, Iterable, List, Optional, Tuple, Union

from smarthub.model import Event, EventPatch
from smarthub.observable import Observable
from smarthub.timeutil import end_of_day_ms, now_ms, start_of_day_ms

logger = logging.getLogger("smarthub.events")


def _new_event_id() -> str:
    return str(uuid.uuid4())


class EventCalendar:
    """
    Authoritative store of events.

    clock returns "now" in epoch milliseconds and is sampled once per
    get_upcoming_events call. Tests inject a fixed clock.
    """

    def __init__(
        self,
        events: Iterable[Event] = (),
        *,
        clock: Callable[[], int] = now_ms,
        id_factory: Callable[[], str] = _new_event_id,
    ) -> None:
        self._clock = clock
        self._id_factory = id_factory
        self._events: List[Event] = []
        self._lock = threading.RLock()

        seen: set[str] = set()
        for ev in events:
            if ev.id in seen:
                raise ValueError(f"Duplicate event id: {ev.id!r}")
            seen.add(ev.id)
            self._events.append(ev)

        self.all_events: Observable[List[Event]] = Observable(list(self._events))

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_event(
        self,
        title: str,
        description: str,
        start_time: int,
        end_time: int,
        location: str = "",
        organizer: str = "",
    ) -> Event:
        """
        Create and store a new event. Always succeeds.

        The time range is stored as given; end_time < start_time is not rejected here.
        """
        with self._lock:
            event_id = self._id_factory()
            while self._index_of(event_id) is not None:
                event_id = self._id_factory()

            event = Event(
                id=event_id,
                title=title,
                description=description,
                start_time=int(start_time),
                end_time=int(end_time),
                location=location,
                organizer=organizer,
            )
            self._events.append(event)
            self._publish()

        logger.info("Added event %s (%s)", event.id, event.title)
        return event

    def update_event(
        self,
        event_id: str,
        patch: Optional[EventPatch] = None,
        *,
        title: Optional[str] = None,
        description: Optional[str] = None,
        start_time: Optional[int] = None,
        end_time: Optional[int] = None,
        location: Optional[str] = None,
        organizer: Optional[str] = None,
    ) -> Optional[Event]:
        """
        Apply a partial update. Either pass an EventPatch or keyword fields, not both.

        Returns None (and publishes nothing) if the event does not exist.
        The updated event keeps its position in the backing order.
        """
        fields = (title, description, start_time, end_time, location, organizer)
        if patch is not None and any(f is not None for f in fields):
            raise TypeError("update_event() takes either a patch or keyword fields, not both")
        if patch is None:
            patch = EventPatch(
                title=title,
                description=description,
                start_time=start_time,
                end_time=end_time,
                location=location,
                organizer=organizer,
            )

        with self._lock:
            index = self._index_of(event_id)
            if index is None:
                logger.debug("Update for unknown event %s", event_id)
                return None

            updated = patch.apply(self._events[index])
            self._events[index] = updated
            self._publish()

        logger.info("Updated event %s", event_id)
        return updated

    def delete_event(self, event_id: str) -> bool:
        with self._lock:
            index = self._index_of(event_id)
            if index is None:
                logger.debug("Delete for unknown event %s", event_id)
                return False
            del self._events[index]
            self._publish()

        logger.info("Deleted event %s", event_id)
        return True

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_events_for_date(self, day: Union[date, datetime]) -> List[Event]:
        """
        Return events whose start_time lies within the local day
        [00:00:00.000, 23:59:59.999], sorted by start_time (stable).
        """
        start = start_of_day_ms(day)
        end = end_of_day_ms(day)
        with self._lock:
            matches = [ev for ev in self._events if start <= ev.start_time <= end]
        return sorted(matches, key=lambda ev: ev.start_time)

    def get_upcoming_events(self, limit: int = 5) -> List[Event]:
        """
        Return at most `limit` events starting strictly after now, soonest first.
        """
        if limit <= 0:
            return []
        now = self._clock()
        with self._lock:
            upcoming = [ev for ev in self._events if ev.start_time > now]
        upcoming.sort(key=lambda ev: ev.start_time)
        return upcoming[:limit]

    def get_by_id(self, event_id: str) -> Optional[Event]:
        with self._lock:
            index = self._index_of(event_id)
            return self._events[index] if index is not None else None

    def events(self) -> Tuple[Event, ...]:
        with self._lock:
            return tuple(self._events)

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _index_of(self, event_id: str) -> Optional[int]:
        for i, ev in enumerate(self._events):
            if ev.id == event_id:
                return i
        return None

    def _publish(self) -> None:
        # subscribers get a copy; the backing list stays private
        self.all_events.publish(list(self._events))


__all__ = ["EventCalendar"]
