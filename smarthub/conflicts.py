"""
Conflict detection.

Given calendar events, detect pairs whose time ranges overlap.
Overlap rule:
    start < other_end AND end > other_start
"""

from __future__ import annotations

from typing import Iterable, List, Tuple

from smarthub.model import Event


def _overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    return a_start < b_end and a_end > b_start


def find_conflicts(events: Iterable[Event]) -> List[Tuple[Event, Event]]:
    """
    Find overlapping event pairs (A,B), each pair appears once, A starting first.
    Touching endpoints (A.end == B.start) are not a conflict.
    """
    # if end <= start, treat as invalid / skip (avoid weird conflicts)
    valid = [ev for ev in events if ev.end_time > ev.start_time]
    valid.sort(key=lambda ev: (ev.start_time, ev.end_time))

    conflicts: List[Tuple[Event, Event]] = []
    for i in range(len(valid)):
        a = valid[i]
        for j in range(i + 1, len(valid)):
            b = valid[j]
            # sorted by start: nothing later can overlap a
            if b.start_time >= a.end_time:
                break
            if _overlaps(a.start_time, a.end_time, b.start_time, b.end_time):
                conflicts.append((a, b))

    return conflicts
