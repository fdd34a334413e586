"""
Demo accounts and events used by `smarthub seed` and by fresh sessions
without a state file.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import List, Optional

from smarthub.events import EventCalendar
from smarthub.model import Account, Event, Role
from smarthub.timeutil import to_epoch_ms


def sample_accounts() -> List[Account]:
    return [
        Account(
            id="admin",
            display_name="Administrator",
            email="admin@tbsuniversity.edu",
            credential_secret="admin123",
            email_verified=True,
            role=Role.ADMIN,
        ),
        Account(
            id="student1",
            display_name="Yosser",
            email="yosser@tbsuniversity.edu",
            credential_secret="password123",
            email_verified=True,
            role=Role.STUDENT,
        ),
        Account(
            id="prof1",
            display_name="Elynn Lee",
            email="elynn@tbsuniversity.edu",
            credential_secret="professor123",
            email_verified=True,
            role=Role.PROFESSOR,
        ),
    ]


def _at(day: date, hour: int, minute: int) -> int:
    return to_epoch_ms(datetime(day.year, day.month, day.day, hour, minute))


def populate_sample_events(events: EventCalendar, today: Optional[date] = None) -> List[Event]:
    """
    Add the demo schedule relative to `today`: three sessions today,
    two tomorrow and one a week from today.
    """
    today = today or date.today()
    tomorrow = today + timedelta(days=1)
    next_week = tomorrow + timedelta(days=6)

    added = [
        events.add_event(
            "Advanced Programming session",
            "Learn about advanced programming concepts and techniques",
            _at(today, 8, 30),
            _at(today, 10, 0),
            location="Room A101",
            organizer="Prof. Elynn Lee",
        ),
        events.add_event(
            "Advanced Programming session",
            "Continuation of morning session with practical exercises",
            _at(today, 11, 30),
            _at(today, 13, 0),
            location="Room A101",
            organizer="Prof. Elynn Lee",
        ),
        events.add_event(
            "Advanced Programming session",
            "Final session with project work",
            _at(today, 13, 0),
            _at(today, 14, 30),
            location="Room A101",
            organizer="Prof. Elynn Lee",
        ),
        events.add_event(
            "Database Systems",
            "Introduction to database design and SQL",
            _at(tomorrow, 9, 0),
            _at(tomorrow, 11, 0),
            location="Room B202",
            organizer="Prof. Oscar Dum",
        ),
        events.add_event(
            "Hack 'n' Slash Workshop",
            "Hands-on workshop for ethical hacking techniques",
            _at(tomorrow, 13, 0),
            _at(tomorrow, 16, 0),
            location="Computer Lab C",
            organizer="MERIT Club",
        ),
        events.add_event(
            "Shark Tank Competition",
            "Present your business ideas to potential investors",
            _at(next_week, 14, 0),
            _at(next_week, 18, 0),
            location="Main Auditorium",
            organizer="JCI TBS",
        ),
    ]
    return added
