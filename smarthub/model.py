"""
Central data model definitions used across the project.

This module defines the canonical structure of Account and Event objects so that:
- the Directory and the Event Calendar share the same field names
- storage, export and CLI layers read the same records
- updates are expressed as explicit patches instead of ad-hoc keyword juggling

Records are immutable. A mutation always produces a new record.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from enum import Enum
from typing import Any, Optional


class Role(str, Enum):
    ADMIN = "ADMIN"
    PROFESSOR = "PROFESSOR"
    STUDENT = "STUDENT"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: str) -> "Role":
        """
        Parse a role name case-insensitively. Raises ValueError for unknown names.
        """
        try:
            return cls(value.strip().upper())
        except ValueError as exc:
            raise ValueError(f"Unknown role: {value!r}") from exc


@dataclass(frozen=True)
class Account:
    """
    Represents one registered identity held by the Directory.
    """

    id: str
    display_name: str
    email: str
    credential_secret: str
    email_verified: bool = False
    role: Role = Role.STUDENT
    locale: str = "en"

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["role"] = self.role.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Account":
        return cls(
            id=str(data["id"]),
            display_name=str(data.get("display_name", "")),
            email=str(data["email"]),
            credential_secret=str(data.get("credential_secret", "")),
            email_verified=bool(data.get("email_verified", False)),
            role=Role.parse(str(data.get("role", Role.STUDENT.value))),
            locale=str(data.get("locale", "en")),
        )


@dataclass(frozen=True)
class Event:
    """
    Represents one scheduled calendar item.

    start_time and end_time are absolute instants in epoch milliseconds.
    """

    id: str
    title: str
    description: str
    start_time: int
    end_time: int
    location: str = ""
    organizer: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Event":
        return cls(
            id=str(data["id"]),
            title=str(data.get("title", "")),
            description=str(data.get("description", "")),
            start_time=int(data["start_time"]),
            end_time=int(data["end_time"]),
            location=str(data.get("location", "")),
            organizer=str(data.get("organizer", "")),
        )


@dataclass(frozen=True)
class ProfilePatch:
    """
    Partial account update. Fields left as None keep their stored value.
    """

    display_name: Optional[str] = None
    email: Optional[str] = None
    credential_secret: Optional[str] = None

    def changes(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}

    def apply(self, account: Account) -> Account:
        return replace(account, **self.changes())


@dataclass(frozen=True)
class EventPatch:
    """
    Partial event update. Fields left as None keep their stored value.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    start_time: Optional[int] = None
    end_time: Optional[int] = None
    location: Optional[str] = None
    organizer: Optional[str] = None

    def changes(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}

    def apply(self, event: Event) -> Event:
        return replace(event, **self.changes())
