"""
Directory: the in-memory registry of accounts and the active session.

Every expected business outcome (unknown id, duplicate id/email, wrong
credentials) is reported by returning None, never by raising.
"""

from __future__ import annotations

import logging
import threading
from typing import Iterable, List, Optional, Tuple

from smarthub.model import Account, ProfilePatch, Role
from smarthub.observable import Observable
from smarthub.security import PlainSecret, SecretHasher

logger = logging.getLogger("smarthub.directory")


class Directory:
    """
    Authoritative store of accounts.

    current_account is an observable holding the active session (or None).
    It is re-published on login, registration, logout, and whenever the active
    account's record is replaced by a profile update.
    """

    def __init__(self, accounts: Iterable[Account] = (), *, hasher: Optional[SecretHasher] = None) -> None:
        self._hasher: SecretHasher = hasher if hasher is not None else PlainSecret()
        self._accounts: List[Account] = []
        self._lock = threading.RLock()
        self.current_account: Observable[Optional[Account]] = Observable(None)

        for account in accounts:
            if self._find_conflict(account.id, account.email) is not None:
                raise ValueError(f"Duplicate account id or email: {account.id!r} / {account.email!r}")
            self._accounts.append(account)

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def login(self, identifier: str, secret: str) -> Optional[Account]:
        """
        Authenticate by id or email. On success the account becomes the active session.
        On failure the current session is left untouched.
        """
        with self._lock:
            for account in self._accounts:
                if identifier not in (account.id, account.email):
                    continue
                if self._hasher.verify(secret, account.credential_secret):
                    self.current_account.publish(account)
                    logger.info("Account %s signed in", account.id)
                    return account

        logger.warning("Failed login attempt for %s", identifier)
        return None

    def logout(self) -> None:
        with self._lock:
            previous = self.current_account.value
            if previous is None:
                return
            self.current_account.publish(None)
        logger.info("Account %s signed out", previous.id)

    @property
    def active(self) -> Optional[Account]:
        return self.current_account.value

    # ------------------------------------------------------------------
    # Registration & profile
    # ------------------------------------------------------------------

    def register(
        self,
        account_id: str,
        name: str,
        email: str,
        secret: str,
        role: Role = Role.STUDENT,
    ) -> Optional[Account]:
        """
        Create a new account and make it the active session.
        Returns None if the id or the email is already registered.
        """
        with self._lock:
            if self._find_conflict(account_id, email) is not None:
                logger.warning("Registration rejected, id or email already in use: %s / %s", account_id, email)
                return None

            account = Account(
                id=account_id,
                display_name=name,
                email=email,
                credential_secret=self._hasher.hash(secret),
                email_verified=False,
                role=role,
                locale="en",
            )
            self._accounts.append(account)
            self.current_account.publish(account)

        logger.info("Registered account %s with role %s", account.id, account.role.value)
        return account

    def update_profile(
        self,
        account_id: str,
        name: Optional[str] = None,
        email: Optional[str] = None,
        secret: Optional[str] = None,
    ) -> Optional[Account]:
        """
        Replace only the supplied fields of an account.

        Returns None if the account does not exist, or if the new email already
        belongs to a different account.
        """
        patch = ProfilePatch(
            display_name=name,
            email=email,
            credential_secret=self._hasher.hash(secret) if secret is not None else None,
        )
        return self._apply_patch(account_id, patch)

    def _apply_patch(self, account_id: str, patch: ProfilePatch) -> Optional[Account]:
        with self._lock:
            index = self._index_of(account_id)
            if index is None:
                logger.debug("Profile update for unknown account %s", account_id)
                return None

            if patch.email is not None:
                owner = self._find_conflict(None, patch.email)
                if owner is not None and owner.id != account_id:
                    logger.warning("Profile update for %s rejected, email %s already in use", account_id, patch.email)
                    return None

            updated = patch.apply(self._accounts[index])
            self._accounts[index] = updated

            active = self.current_account.value
            if active is not None and active.id == account_id:
                self.current_account.publish(updated)

        logger.info("Updated profile of account %s (%s)", account_id, ", ".join(sorted(patch.changes())) or "no changes")
        return updated

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def verify_secret(self, account_id: str, secret: str) -> bool:
        """
        Check a secret against the stored one without touching the session.
        """
        account = self.get_by_id(account_id)
        if account is None:
            return False
        return self._hasher.verify(secret, account.credential_secret)

    def get_by_id(self, account_id: str) -> Optional[Account]:
        with self._lock:
            index = self._index_of(account_id)
            return self._accounts[index] if index is not None else None

    def get_by_role(self, role: Role) -> List[Account]:
        with self._lock:
            return [a for a in self._accounts if a.role == role]

    def accounts(self) -> Tuple[Account, ...]:
        with self._lock:
            return tuple(self._accounts)

    def __len__(self) -> int:
        with self._lock:
            return len(self._accounts)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _index_of(self, account_id: str) -> Optional[int]:
        for i, account in enumerate(self._accounts):
            if account.id == account_id:
                return i
        return None

    def _find_conflict(self, account_id: Optional[str], email: Optional[str]) -> Optional[Account]:
        for account in self._accounts:
            if account_id is not None and account.id == account_id:
                return account
            if email is not None and account.email == email:
                return account
        return None


__all__ = ["Directory"]
