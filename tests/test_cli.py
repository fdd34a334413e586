"""
Tests for CLI entry points.

Every test points the CLI at a temporary state file (via --state) so that
the real package data is never touched.
"""

import io
import json
import os
import tempfile
import unittest
from contextlib import redirect_stdout
from datetime import date, timedelta
from pathlib import Path
from unittest import mock

from smarthub.assistant import ChatClient
from smarthub.cli import main
from smarthub.storage import load_state


def run_cli(*argv: str) -> tuple[int, str]:
    buf = io.StringIO()
    with redirect_stdout(buf):
        try:
            main(list(argv))
        except SystemExit as exc:
            code = exc.code if isinstance(exc.code, int) else 1
        else:
            code = 0
    return code, buf.getvalue()


class TestCLI(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.state = str(Path(self._tmp.name) / "state.json")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def cli(self, *argv: str) -> tuple[int, str]:
        return run_cli("--state", self.state, *argv)

    def test_seed_writes_sample_data(self) -> None:
        code, out = self.cli("seed")
        self.assertEqual(code, 0)
        self.assertIn("Seeded 3 accounts and 6 events", out)

        state = load_state(self.state)
        self.assertEqual(len(state.accounts), 3)
        self.assertEqual(len(state.events), 6)

        code, _ = self.cli("seed")
        self.assertEqual(code, 1)

    def test_login(self) -> None:
        code, out = self.cli("login", "admin", "admin123")
        self.assertEqual(code, 0)
        self.assertIn("Welcome, Administrator (ADMIN)", out)

        code, out = self.cli("login", "admin", "wrong")
        self.assertEqual(code, 1)
        self.assertIn("Invalid credentials", out)

    def test_register_validates_and_persists(self) -> None:
        code, out = self.cli("register", "01234567", "New Student", "new@x.com", "weak")
        self.assertEqual(code, 1)
        self.assertIn("Password must contain", out)

        code, out = self.cli("register", "01234567", "New Student", "new@x.com", "Secret1!")
        self.assertEqual(code, 0)
        self.assertIn("Registered: 01234567", out)

        code, out = self.cli("register", "01234568", "Copy", "new@x.com", "Secret1!")
        self.assertEqual(code, 1)
        self.assertIn("already exists", out)

        code, out = self.cli("login", "new@x.com", "Secret1!")
        self.assertEqual(code, 0)

        code, out = self.cli("users", "--role", "student")
        self.assertIn("01234567", out)
        self.assertNotIn("admin", out)

    def test_profile_update(self) -> None:
        code, out = self.cli("profile", "student1", "--name", "Yosser B.")
        self.assertEqual(code, 0)
        self.assertIn("Yosser B.", out)

        code, _ = self.cli("profile", "ghost", "--name", "x")
        self.assertEqual(code, 1)

    def test_profile_password_change_needs_current_password(self) -> None:
        self.cli("seed")

        code, out = self.cli("profile", "admin", "--password", "Changed1!")
        self.assertEqual(code, 1)
        self.assertIn("--current-password", out)

        code, out = self.cli("profile", "admin", "--password", "Changed1!", "--current-password", "wrong")
        self.assertEqual(code, 1)
        self.assertIn("Current password is incorrect", out)
        self.assertEqual(self.cli("login", "admin", "Changed1!")[0], 1)
        self.assertEqual(self.cli("login", "admin", "admin123")[0], 0)

        code, _ = self.cli("profile", "admin", "--password", "Changed1!", "--current-password", "admin123")
        self.assertEqual(code, 0)
        self.assertEqual(self.cli("login", "admin", "Changed1!")[0], 0)
        self.assertEqual(self.cli("login", "admin", "admin123")[0], 1)

    def test_event_lifecycle(self) -> None:
        self.cli("seed")
        code, out = self.cli(
            "add-event", "Career Fair", "--start", "2030-05-06 10:00", "--end", "2030-05-06 15:00", "--location", "Hall"
        )
        self.assertEqual(code, 0)
        event_id = out.strip().split(" | ")[-1]

        code, out = self.cli("day", "2030-05-06")
        self.assertIn("Career Fair", out)

        code, out = self.cli("update-event", event_id, "--title", "Job Fair")
        self.assertEqual(code, 0)
        self.assertIn("Job Fair", out)

        code, _ = self.cli("update-event", event_id, "--end", "2030-05-06 09:00")
        self.assertEqual(code, 1)

        code, _ = self.cli("delete-event", event_id)
        self.assertEqual(code, 0)
        code, _ = self.cli("delete-event", event_id)
        self.assertEqual(code, 1)

        code, out = self.cli("day", "2030-05-06")
        self.assertIn("No events on 2030-05-06", out)

    def test_add_event_rejects_inverted_range(self) -> None:
        code, out = self.cli("add-event", "Oops", "--start", "2030-05-06 10:00", "--end", "2030-05-06 09:00")
        self.assertEqual(code, 1)
        self.assertIn("must not end before it starts", out)

    def test_month_and_upcoming(self) -> None:
        self.cli("seed")
        tomorrow = date.today() + timedelta(days=1)

        code, out = self.cli("month", tomorrow.strftime("%Y-%m"))
        self.assertEqual(code, 0)
        self.assertIn(f"{tomorrow.day}*", out)

        code, out = self.cli("upcoming", "--limit", "2")
        self.assertEqual(code, 0)
        self.assertIn("Upcoming events", out)

    def test_conflicts_and_export(self) -> None:
        self.cli("seed")
        code, out = self.cli("conflicts")
        self.assertEqual(code, 0)
        self.assertIn("No conflicts found.", out)

        ics = str(Path(self._tmp.name) / "out.ics")
        code, out = self.cli("export", ics)
        self.assertEqual(code, 0)
        self.assertIn("Exported 6 events", out)

    def test_chat_without_api_key(self) -> None:
        with mock.patch.dict(os.environ, {"SMARTHUB_CHAT_API_KEY": "", "OPENAI_API_KEY": ""}):
            code, out = self.cli("chat", "hello")
        self.assertEqual(code, 1)
        self.assertIn("No chat API key configured", out)

    def test_chat_history_is_saved_and_continued(self) -> None:
        history = Path(self._tmp.name) / "chat.json"
        resp = mock.Mock(status_code=200)
        resp.json.return_value = {"choices": [{"message": {"content": "Room A101"}}]}
        session = mock.Mock()
        session.post.return_value = resp
        client = ChatClient("sk-test", url="https://chat.invalid/v1", model="m", vision_model="vm", session=session)

        with mock.patch("smarthub.cli.ChatClient.from_settings", return_value=client):
            code, out = self.cli("chat", "Where is the lecture?", "--history", str(history))
            self.assertEqual(code, 0)
            self.assertIn("Room A101", out)

            code, _ = self.cli("chat", "And tomorrow?", "--history", str(history))
            self.assertEqual(code, 0)

        messages = session.post.call_args.kwargs["json"]["messages"]
        self.assertEqual([m["content"] for m in messages[1:]], ["Where is the lecture?", "Room A101", "And tomorrow?"])
        self.assertEqual(len(json.loads(history.read_text(encoding="utf-8"))), 4)

    def test_unknown_command_is_usage_error(self) -> None:
        with redirect_stdout(io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                main(["--state", self.state, "frobnicate"])
        self.assertEqual(ctx.exception.code, 2)


if __name__ == "__main__":
    unittest.main()
