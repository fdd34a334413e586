"""
Optional persistence of the portal state between CLI runs.

The Directory and the Event Calendar are memory-resident. This module saves
their current snapshots to a single JSON file and reads them back so that a
new process can construct fresh stores from them:

    {"accounts": [...], "events": [...]}

The active session is never persisted.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, List

from smarthub.model import Account, Event

logger = logging.getLogger("smarthub.storage")


@dataclass
class PortalState:
    accounts: List[Account] = field(default_factory=list)
    events: List[Event] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.accounts and not self.events


def _load_records(raw: Any, factory: Any) -> list:
    if not isinstance(raw, list):
        return []
    out = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        try:
            out.append(factory(item))
        except (KeyError, TypeError, ValueError):
            logger.warning("Skipping malformed record in state file: %r", item)
    return out


def _dedupe(records: Iterable[Any], *keys: str) -> list:
    # first occurrence wins, so a hand-edited file cannot break store invariants
    seen: dict[str, set] = {k: set() for k in keys}
    out = []
    for rec in records:
        values = {k: getattr(rec, k) for k in keys}
        if any(values[k] in seen[k] for k in keys):
            logger.warning("Skipping duplicate record in state file: %r", rec)
            continue
        for k in keys:
            seen[k].add(values[k])
        out.append(rec)
    return out


def load_state(path: str | Path) -> PortalState:
    """
    Load the saved state.

    Returns an empty state if the file does not exist or is invalid.
    """
    state_path = Path(path)

    if not state_path.exists():
        return PortalState()

    try:
        data = json.loads(state_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
        logger.warning("Ignoring unreadable state file %s: %s", state_path, exc)
        return PortalState()

    if not isinstance(data, dict):
        return PortalState()

    accounts = _dedupe(_load_records(data.get("accounts"), Account.from_dict), "id", "email")
    events = _dedupe(_load_records(data.get("events"), Event.from_dict), "id")
    return PortalState(accounts=accounts, events=events)


def save_state(accounts: Iterable[Account], events: Iterable[Event], path: str | Path) -> None:
    """
    Save accounts and events to the state file. Creates parent directories if needed.
    """
    state_path = Path(path)
    state_path.parent.mkdir(parents=True, exist_ok=True)

    payload = {
        "accounts": [a.to_dict() for a in accounts],
        "events": [e.to_dict() for e in events],
    }
    state_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.debug("Saved state to %s", state_path)
