"""
iCalendar (.ics) export.

We convert calendar events into a file that can be imported into:
- Google Calendar
- Outlook
- Apple Calendar
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from smarthub.model import Event
from smarthub.timeutil import from_epoch_ms


def _ics_escape(text: str) -> str:
    """
    Escape text for ICS fields (very small subset, sufficient for our use).
    """
    return (
        text.replace("\\", "\\\\").replace("\r\n", "\\n").replace("\n", "\\n").replace(";", "\\;").replace(",", "\\,")
    )


def _dt_local(epoch_ms: int) -> str:
    """
    Convert epoch milliseconds to ICS local datetime string 'YYYYMMDDTHHMMSS'.
    """
    return from_epoch_ms(epoch_ms).strftime("%Y%m%dT%H%M%S")


def export_events_to_ics(events: Iterable[Event], out_path: str | Path) -> int:
    """
    Export events to an .ics file. Returns number of exported events.

    Events whose end lies before their start are skipped.
    """
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)

    lines: list[str] = []
    lines.append("BEGIN:VCALENDAR")
    lines.append("VERSION:2.0")
    lines.append("PRODID:-//SmartHub//EN")
    lines.append("CALSCALE:GREGORIAN")

    dtstamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    count = 0
    for ev in sorted(events, key=lambda e: e.start_time):
        if ev.end_time < ev.start_time:
            continue

        summary = ev.title.strip() or "SmartHub Event"

        lines.append("BEGIN:VEVENT")
        lines.append(f"UID:{_ics_escape(ev.id)}@smarthub")
        lines.append(f"DTSTAMP:{dtstamp}")
        lines.append(f"DTSTART:{_dt_local(ev.start_time)}")
        lines.append(f"DTEND:{_dt_local(ev.end_time)}")
        lines.append(f"SUMMARY:{_ics_escape(summary)}")
        if ev.location.strip():
            lines.append(f"LOCATION:{_ics_escape(ev.location.strip())}")
        if ev.description.strip():
            lines.append(f"DESCRIPTION:{_ics_escape(ev.description.strip())}")
        if ev.organizer.strip():
            organizer = ev.organizer.strip().replace('"', "'")
            lines.append(f'ORGANIZER;CN="{organizer}":mailto:noreply@smarthub.invalid')
        lines.append("END:VEVENT")
        count += 1

    lines.append("END:VCALENDAR")

    # ICS standard uses CRLF
    out.write_text("\r\n".join(lines) + "\r\n", encoding="utf-8")
    return count
