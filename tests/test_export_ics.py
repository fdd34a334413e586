import tempfile
import unittest
from datetime import datetime
from pathlib import Path

from smarthub.export_ics import export_events_to_ics
from smarthub.model import Event
from smarthub.timeutil import to_epoch_ms


class TestExportICS(unittest.TestCase):
    def test_export_creates_file_and_contains_calendar(self) -> None:
        events = [
            Event(
                id="e1",
                title="Database Systems",
                description="Introduction to database design, SQL",
                start_time=to_epoch_ms(datetime(2026, 2, 19, 10, 15)),
                end_time=to_epoch_ms(datetime(2026, 2, 19, 12, 0)),
                location="Room B202",
                organizer="Prof. Oscar Dum",
            ),
            Event(id="bad", title="Inverted", description="", start_time=10, end_time=5),
        ]

        with tempfile.TemporaryDirectory() as d:
            out = Path(d) / "out.ics"
            n = export_events_to_ics(events, out)
            self.assertEqual(n, 1)
            text = out.read_text(encoding="utf-8")
            self.assertIn("BEGIN:VCALENDAR", text)
            self.assertIn("BEGIN:VEVENT", text)
            self.assertIn("SUMMARY:Database Systems", text)
            self.assertIn("DTSTART:20260219T101500", text)
            self.assertIn("DTEND:20260219T120000", text)
            self.assertIn("DESCRIPTION:Introduction to database design\\, SQL", text)
            self.assertNotIn("Inverted", text)


if __name__ == "__main__":
    unittest.main()
