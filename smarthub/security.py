"""Credential secret storage strategies for the Directory."""
from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import secrets
from typing import Protocol


class SecretHasher(Protocol):
    def hash(self, secret: str) -> str: ...

    def verify(self, secret: str, stored: str) -> bool: ...


class PlainSecret:
    """Store secrets as supplied.

    Matches the demo behaviour of the portal: the stored ``credential_secret``
    is the password itself. Comparison is still constant-time.
    """

    def hash(self, secret: str) -> str:
        return secret

    def verify(self, secret: str, stored: str) -> bool:
        return hmac.compare_digest(secret.encode("utf-8"), stored.encode("utf-8"))


_PBKDF2_SCHEME = "pbkdf2_sha256"
_PBKDF2_ROUNDS = 600_000
_PBKDF2_SALT_BYTES = 16


class Pbkdf2Secret:
    """Store salted PBKDF2-SHA256 hashes in ``scheme$rounds$salt$hash`` form."""

    def __init__(self, rounds: int = _PBKDF2_ROUNDS) -> None:
        if rounds < 1:
            raise ValueError("PBKDF2 rounds must be positive")
        self._rounds = rounds

    def hash(self, secret: str) -> str:
        salt = secrets.token_bytes(_PBKDF2_SALT_BYTES)
        hash_bytes = hashlib.pbkdf2_hmac("sha256", secret.encode("utf-8"), salt, self._rounds)
        encoded_salt = base64.b64encode(salt).decode("ascii")
        encoded_hash = base64.b64encode(hash_bytes).decode("ascii")
        return f"{_PBKDF2_SCHEME}${self._rounds}${encoded_salt}${encoded_hash}"

    def verify(self, secret: str, stored: str) -> bool:
        try:
            scheme, rounds_text, salt_b64, hash_b64 = stored.split("$", 3)
            rounds = int(rounds_text)
            salt = base64.b64decode(salt_b64)
            expected = base64.b64decode(hash_b64)
        except (ValueError, TypeError, binascii.Error):
            return False
        if scheme != _PBKDF2_SCHEME:
            return False

        calculated = hashlib.pbkdf2_hmac("sha256", secret.encode("utf-8"), salt, rounds)
        return hmac.compare_digest(expected, calculated)


__all__ = ["SecretHasher", "PlainSecret", "Pbkdf2Secret"]
