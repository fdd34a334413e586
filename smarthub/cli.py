"""
CLI (Command Line Interface).

This module provides terminal commands on top of the Directory and the
Event Calendar, e.g.:

    smarthub login <id-or-email> <password>
    smarthub register <id> <name> <email> <password>
    smarthub add-event "Title" --start "2026-02-19 10:15" --end "2026-02-19 12:00"
    smarthub day 2026-02-19
    smarthub upcoming
    smarthub month 2026-02
    smarthub export <file.ics>
    smarthub chat "When is the next exam?"

State is kept in a JSON file between runs (see smarthub/storage.py). Without a
state file the demo accounts and events are loaded.
"""

from __future__ import annotations

import argparse
import base64
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from rich import box
from rich.console import Console
from rich.table import Table

from smarthub.assistant import ChatClient, Conversation
from smarthub.config import Settings
from smarthub.conflicts import find_conflicts
from smarthub.directory import Directory
from smarthub.events import EventCalendar
from smarthub.export_ics import export_events_to_ics
from smarthub.model import Event, Role
from smarthub.monthgrid import WEEKDAY_LABELS, build_month_grid, event_markers
from smarthub.sample_data import populate_sample_events, sample_accounts
from smarthub.services import Services, build_services
from smarthub.storage import save_state
from smarthub.timeutil import from_epoch_ms, parse_local, to_epoch_ms
from smarthub.validation import is_email, password_problems, validate_username

logger = logging.getLogger("smarthub.cli")


def _console() -> Console:
    return Console(highlight=False)


def _fmt_time(epoch_ms: int) -> str:
    return from_epoch_ms(epoch_ms).strftime("%H:%M")


def _fmt_datetime(epoch_ms: int) -> str:
    return from_epoch_ms(epoch_ms).strftime("%Y-%m-%d %H:%M")


def _event_line(ev: Event, with_date: bool = False) -> str:
    when = _fmt_datetime(ev.start_time) if with_date else _fmt_time(ev.start_time)
    line = f"{when}-{_fmt_time(ev.end_time)} | {ev.title}"
    if ev.location:
        line += f" | {ev.location}"
    return f"{line} | {ev.id}"


def _parse_day(text: Optional[str]) -> date:
    if not text:
        return date.today()
    return datetime.strptime(text.strip(), "%Y-%m-%d").date()


def _parse_month(text: Optional[str]) -> tuple[int, int]:
    if not text:
        today = date.today()
        return today.year, today.month
    parsed = datetime.strptime(text.strip(), "%Y-%m")
    return parsed.year, parsed.month


def _parse_ms(text: Optional[str]) -> Optional[int]:
    if text is None:
        return None
    return to_epoch_ms(parse_local(text))


# ---------------------------------------------------------------------------
# Directory commands
# ---------------------------------------------------------------------------


def _cmd_seed(args: argparse.Namespace, services: Services) -> int:
    """
    Write the demo accounts and events to the state file.
    """
    path = services.settings.state_path
    if path.exists() and not args.force:
        print(f"State file already exists: {path} (use --force to overwrite)")
        return 1

    directory = Directory(sample_accounts())
    calendar = EventCalendar()
    populate_sample_events(calendar)
    save_state(directory.accounts(), calendar.events(), path)
    print(f"Seeded {len(directory)} accounts and {len(calendar)} events into: {path}")
    return 0


def _cmd_login(args: argparse.Namespace, services: Services) -> int:
    account = services.directory.login(args.identifier.strip(), args.password)
    if account is None:
        print("Invalid credentials.")
        return 1
    print(f"Welcome, {account.display_name} ({account.role.value})")
    return 0


def _cmd_register(args: argparse.Namespace, services: Services) -> int:
    account_id = (args.account_id or "").strip()
    email = (args.email or "").strip()
    if not validate_username(account_id):
        print("Account id must be an 8-digit student number or an email address.")
        return 1
    if not is_email(email):
        print(f"Invalid email address: {email!r}")
        return 1
    problems = password_problems(args.password)
    if problems:
        print("Password must contain " + ", ".join(problems) + ".")
        return 1

    account = services.directory.register(account_id, args.name.strip(), email, args.password, args.role)
    if account is None:
        print("An account with that id or email already exists.")
        return 1

    services.save()
    print(f"Registered: {account.id} <{account.email}> as {account.role.value}")
    return 0


def _cmd_users(args: argparse.Namespace, services: Services) -> int:
    if args.role:
        accounts = services.directory.get_by_role(args.role)
    else:
        accounts = list(services.directory.accounts())

    if not accounts:
        print("No accounts.")
        return 0

    for a in accounts:
        verified = "verified" if a.email_verified else "unverified"
        print(f"{a.id} | {a.display_name} | {a.email} | {a.role.value} | {verified}")
    return 0


def _cmd_profile(args: argparse.Namespace, services: Services) -> int:
    if args.email is not None and not is_email(args.email.strip()):
        print(f"Invalid email address: {args.email!r}")
        return 1
    if args.password is not None:
        problems = password_problems(args.password)
        if problems:
            print("Password must contain " + ", ".join(problems) + ".")
            return 1
        if args.current_password is None:
            print("Please provide --current-password to change the password.")
            return 1
        if not services.directory.verify_secret(args.account_id.strip(), args.current_password):
            print("Current password is incorrect.")
            return 1

    updated = services.directory.update_profile(
        args.account_id.strip(),
        name=args.name,
        email=args.email.strip() if args.email is not None else None,
        secret=args.password,
    )
    if updated is None:
        print(f"Profile not updated: unknown account or email already in use ({args.account_id}).")
        return 1

    services.save()
    print(f"Updated: {updated.id} | {updated.display_name} | {updated.email}")
    return 0


# ---------------------------------------------------------------------------
# Calendar commands
# ---------------------------------------------------------------------------


def _cmd_add_event(args: argparse.Namespace, services: Services) -> int:
    try:
        start = to_epoch_ms(parse_local(args.start))
        end = to_epoch_ms(parse_local(args.end))
    except ValueError:
        print("Please use 'YYYY-MM-DD HH:MM' for --start and --end.")
        return 1
    if end < start:
        print("The event must not end before it starts.")
        return 1

    ev = services.calendar.add_event(
        args.title.strip(),
        args.description or "",
        start,
        end,
        location=args.location or "",
        organizer=args.organizer or "",
    )
    services.save()
    print(f"Added: {_event_line(ev, with_date=True)}")
    return 0


def _cmd_update_event(args: argparse.Namespace, services: Services) -> int:
    try:
        start = _parse_ms(args.start)
        end = _parse_ms(args.end)
    except ValueError:
        print("Please use 'YYYY-MM-DD HH:MM' for --start and --end.")
        return 1

    current = services.calendar.get_by_id(args.event_id)
    if current is not None:
        new_start = start if start is not None else current.start_time
        new_end = end if end is not None else current.end_time
        if new_end < new_start:
            print("The event must not end before it starts.")
            return 1

    ev = services.calendar.update_event(
        args.event_id,
        title=args.title,
        description=args.description,
        start_time=start,
        end_time=end,
        location=args.location,
        organizer=args.organizer,
    )
    if ev is None:
        print(f"Event not found: {args.event_id}")
        return 1

    services.save()
    print(f"Updated: {_event_line(ev, with_date=True)}")
    return 0


def _cmd_delete_event(args: argparse.Namespace, services: Services) -> int:
    if not services.calendar.delete_event(args.event_id):
        print(f"Event not found: {args.event_id}")
        return 1
    services.save()
    print(f"Deleted: {args.event_id} (events: {len(services.calendar)})")
    return 0


def _cmd_day(args: argparse.Namespace, services: Services) -> int:
    try:
        day = _parse_day(args.date)
    except ValueError:
        print("Please use YYYY-MM-DD for the date.")
        return 1

    events = services.calendar.get_events_for_date(day)
    if not events:
        print(f"No events on {day.isoformat()}.")
        return 0

    print(f"Events on {day.isoformat()}: {len(events)}")
    for ev in events:
        print(f"- {_event_line(ev)}")
    return 0


def _cmd_upcoming(args: argparse.Namespace, services: Services) -> int:
    events = services.calendar.get_upcoming_events(args.limit)
    if not events:
        print("No upcoming events.")
        return 0

    table = Table(title="Upcoming events", box=box.SIMPLE)
    table.add_column("When")
    table.add_column("Title")
    table.add_column("Location")
    table.add_column("Organizer")
    for ev in events:
        table.add_row(_fmt_datetime(ev.start_time), ev.title, ev.location, ev.organizer)
    _console().print(table)
    return 0


def _cmd_month(args: argparse.Namespace, services: Services) -> int:
    try:
        year, month = _parse_month(args.month)
    except ValueError:
        print("Please use YYYY-MM for the month.")
        return 1

    grid = build_month_grid(year, month)
    markers = event_markers(grid, services.calendar)
    today = date.today()

    table = Table(title=grid.title, box=box.ROUNDED, show_lines=True)
    for label in WEEKDAY_LABELS:
        table.add_column(label, justify="center")

    for row in grid.cells:
        cells = []
        for day in row:
            if day is None:
                cells.append("")
                continue
            text = f"{day}*" if markers.get(day) else str(day)
            if date(year, month, day) == today:
                text = f"[bold]{text}[/bold]"
            cells.append(text)
        table.add_row(*cells)

    _console().print(table)
    print("* = day has events")
    return 0


def _cmd_conflicts(args: argparse.Namespace, services: Services) -> int:
    confs = find_conflicts(services.calendar.events())
    if not confs:
        print("No conflicts found.")
        return 0

    print(f"Conflicts found: {len(confs)}")
    for a, b in confs:
        print(f"- {_event_line(a, with_date=True)}  <->  {_event_line(b, with_date=True)}")
    return 0


def _cmd_export(args: argparse.Namespace, services: Services) -> int:
    events = services.calendar.events()
    if not events:
        print("No events to export.")
        return 0

    out_path = (args.out or "").strip()
    if not out_path:
        print("Please provide output .ics path.")
        return 1

    n = export_events_to_ics(events, out_path)
    print(f"Exported {n} events to: {out_path}")
    return 0


def _cmd_chat(args: argparse.Namespace, services: Services) -> int:
    image_b64: Optional[str] = None
    if args.image:
        try:
            image_b64 = base64.b64encode(Path(args.image).read_bytes()).decode("ascii")
        except OSError as exc:
            print(f"Cannot read image: {exc}")
            return 1

    conversation = Conversation()
    if args.history and Path(args.history).exists() and not conversation.load(args.history):
        print(f"Cannot load conversation history: {args.history}")
        return 1

    client = ChatClient.from_settings(services.settings)
    try:
        outcome = client.send(conversation, args.message, image_base64=image_b64)
    finally:
        client.close()

    if not outcome.ok:
        print(f"Error: {outcome.error}")
        return 1
    if args.history:
        conversation.save(args.history)
    print(outcome.text)
    return 0


# ---------------------------------------------------------------------------
# Parser & entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="smarthub", description="SmartHub university portal CLI")
    parser.add_argument("--state", type=str, default=None, help="State file path (default: $SMARTHUB_STATE_PATH)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_seed = sub.add_parser("seed", help="Write demo accounts and events to the state file")
    p_seed.add_argument("--force", action="store_true", help="Overwrite an existing state file")

    p_login = sub.add_parser("login", help="Check credentials")
    p_login.add_argument("identifier", type=str, help="Account id or email")
    p_login.add_argument("password", type=str)

    p_register = sub.add_parser("register", help="Register a new account")
    p_register.add_argument("account_id", type=str, help="Account id (e.g. 01234567)")
    p_register.add_argument("name", type=str)
    p_register.add_argument("email", type=str)
    p_register.add_argument("password", type=str)
    p_register.add_argument("--role", type=Role.parse, default=Role.STUDENT, choices=list(Role))

    p_users = sub.add_parser("users", help="List accounts")
    p_users.add_argument("--role", type=Role.parse, default=None, choices=list(Role))

    p_profile = sub.add_parser("profile", help="Update an account profile")
    p_profile.add_argument("account_id", type=str)
    p_profile.add_argument("--name", type=str, default=None)
    p_profile.add_argument("--email", type=str, default=None)
    p_profile.add_argument("--password", type=str, default=None, help="New password (needs --current-password)")
    p_profile.add_argument("--current-password", type=str, default=None)

    p_add = sub.add_parser("add-event", help="Add a calendar event")
    p_add.add_argument("title", type=str)
    p_add.add_argument("--start", type=str, required=True, help="Start, 'YYYY-MM-DD HH:MM'")
    p_add.add_argument("--end", type=str, required=True, help="End, 'YYYY-MM-DD HH:MM'")
    p_add.add_argument("--description", type=str, default="")
    p_add.add_argument("--location", type=str, default="")
    p_add.add_argument("--organizer", type=str, default="")

    p_update = sub.add_parser("update-event", help="Update fields of an event")
    p_update.add_argument("event_id", type=str)
    p_update.add_argument("--title", type=str, default=None)
    p_update.add_argument("--start", type=str, default=None)
    p_update.add_argument("--end", type=str, default=None)
    p_update.add_argument("--description", type=str, default=None)
    p_update.add_argument("--location", type=str, default=None)
    p_update.add_argument("--organizer", type=str, default=None)

    p_delete = sub.add_parser("delete-event", help="Delete an event by id")
    p_delete.add_argument("event_id", type=str)

    p_day = sub.add_parser("day", help="List events of one day")
    p_day.add_argument("date", type=str, nargs="?", default=None, help="YYYY-MM-DD (default: today)")

    p_upcoming = sub.add_parser("upcoming", help="Show the next events")
    p_upcoming.add_argument("--limit", type=int, default=5)

    p_month = sub.add_parser("month", help="Show a month grid with event markers")
    p_month.add_argument("month", type=str, nargs="?", default=None, help="YYYY-MM (default: current month)")

    sub.add_parser("conflicts", help="Show overlapping events")

    p_export = sub.add_parser("export", help="Export all events to .ics")
    p_export.add_argument("out", type=str, help="Output file path (e.g. out.ics)")

    p_chat = sub.add_parser("chat", help="Ask the SmartHub assistant")
    p_chat.add_argument("message", type=str)
    p_chat.add_argument("--image", type=str, default=None, help="JPEG image to attach")
    p_chat.add_argument("--history", type=str, default=None, help="JSON file to continue and save the conversation")

    return parser


_COMMANDS = {
    "seed": _cmd_seed,
    "login": _cmd_login,
    "register": _cmd_register,
    "users": _cmd_users,
    "profile": _cmd_profile,
    "add-event": _cmd_add_event,
    "update-event": _cmd_update_event,
    "delete-event": _cmd_delete_event,
    "day": _cmd_day,
    "upcoming": _cmd_upcoming,
    "month": _cmd_month,
    "conflicts": _cmd_conflicts,
    "export": _cmd_export,
    "chat": _cmd_chat,
}


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, builds the stores once, dispatches to the
    command handler and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = Settings.from_env().with_state_path(args.state)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    handler = _COMMANDS.get(args.command)
    if handler is None:
        raise SystemExit(2)

    logger.debug("Running %s with state file %s", args.command, settings.state_path)
    services = build_services(settings, seed=args.command != "seed")
    raise SystemExit(handler(args, services))
