"""
Input validators for the sign-in and sign-up forms.

A username is either an e-mail address or an 8-digit student number
starting with 0 or 1. Passwords need at least 8 characters with an upper-case
letter, a lower-case letter, a digit and one of @$!%*?&.
"""

from __future__ import annotations

import re

_EMAIL_RE = re.compile(r"^[A-Za-z0-9+_.-]+@(.+)$")
_STUDENT_ID_RE = re.compile(r"^[01]\d{7}$")
_PASSWORD_RE = re.compile(r"^(?=.*[A-Z])(?=.*[a-z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{8,}$")


def is_email(value: str) -> bool:
    return _EMAIL_RE.fullmatch(value) is not None


def validate_username(value: str) -> bool:
    return is_email(value) or _STUDENT_ID_RE.fullmatch(value) is not None


def validate_password(value: str) -> bool:
    return _PASSWORD_RE.fullmatch(value) is not None


def password_problems(value: str) -> list[str]:
    """
    Human-readable reasons why a password is rejected (empty list if accepted).
    """
    problems: list[str] = []
    if len(value) < 8:
        problems.append("at least 8 characters")
    if not re.search(r"[A-Z]", value):
        problems.append("an upper-case letter")
    if not re.search(r"[a-z]", value):
        problems.append("a lower-case letter")
    if not re.search(r"\d", value):
        problems.append("a digit")
    if not re.search(r"[@$!%*?&]", value):
        problems.append("one of @$!%*?&")
    if re.search(r"[^A-Za-z\d@$!%*?&]", value):
        problems.append("only letters, digits and @$!%*?&")
    return problems
