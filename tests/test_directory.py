"""
Unit tests for the Directory (account store).

Contract:
- login by id or email, exact secret match, sets the active session
- register rejects duplicate id or email and leaves the registry unchanged
- update_profile replaces only supplied fields and refreshes the active session
- every business miss returns None, nothing is raised
"""

import unittest

from smarthub.directory import Directory
from smarthub.model import Account, Role
from smarthub.sample_data import sample_accounts
from smarthub.security import Pbkdf2Secret


class TestDirectoryRegistration(unittest.TestCase):
    def setUp(self) -> None:
        self.directory = Directory()

    def test_register_sets_defaults_and_active_session(self) -> None:
        acc = self.directory.register("student1", "Sam", "s1@x.com", "pw")

        self.assertIsNotNone(acc)
        assert acc is not None
        self.assertFalse(acc.email_verified)
        self.assertEqual(acc.role, Role.STUDENT)
        self.assertEqual(acc.locale, "en")
        self.assertEqual(self.directory.active, acc)

    def test_register_duplicate_id_or_email(self) -> None:
        self.assertIsNotNone(self.directory.register("student1", "Sam", "s1@x.com", "pw"))

        self.assertIsNone(self.directory.register("student1", "Other", "other@x.com", "pw"))
        self.assertIsNone(self.directory.register("other", "Other", "s1@x.com", "pw"))
        self.assertEqual(len(self.directory), 1)

        self.assertIsNotNone(self.directory.register("other", "Other", "other@x.com", "pw"))
        self.assertEqual(len(self.directory), 2)

    def test_rejected_register_keeps_session(self) -> None:
        first = self.directory.register("student1", "Sam", "s1@x.com", "pw")
        self.directory.register("student1", "Other", "other@x.com", "pw")
        self.assertEqual(self.directory.active, first)

    def test_ids_and_emails_stay_unique(self) -> None:
        for i in range(5):
            self.directory.register(f"u{i}", "N", f"u{i}@x.com", "pw")
            self.directory.register(f"u{i}", "N", f"dup{i}@x.com", "pw")
            self.directory.register(f"dup{i}", "N", f"u{i}@x.com", "pw")

        accounts = self.directory.accounts()
        self.assertEqual(len({a.id for a in accounts}), len(accounts))
        self.assertEqual(len({a.email for a in accounts}), len(accounts))

    def test_constructor_rejects_colliding_accounts(self) -> None:
        a = Account(id="a", display_name="A", email="a@x.com", credential_secret="pw")
        b = Account(id="b", display_name="B", email="a@x.com", credential_secret="pw")
        with self.assertRaises(ValueError):
            Directory([a, b])


class TestDirectoryLogin(unittest.TestCase):
    def setUp(self) -> None:
        self.directory = Directory(sample_accounts())

    def test_register_then_login(self) -> None:
        acc = self.directory.register("01234567", "New", "new@x.com", "Secret1!")
        self.directory.logout()

        by_id = self.directory.login("01234567", "Secret1!")
        by_email = self.directory.login("new@x.com", "Secret1!")
        assert acc is not None and by_id is not None and by_email is not None
        self.assertEqual(by_id.id, acc.id)
        self.assertEqual(by_email.id, acc.id)

    def test_bad_credentials_leave_session_untouched(self) -> None:
        admin = self.directory.login("admin", "admin123")
        self.assertIsNone(self.directory.login("student1", "wrong"))
        self.assertIsNone(self.directory.login("nobody", "admin123"))
        self.assertEqual(self.directory.active, admin)

    def test_logout_is_idempotent(self) -> None:
        self.directory.login("admin", "admin123")
        self.directory.logout()
        self.directory.logout()
        self.assertIsNone(self.directory.active)

    def test_session_observable_receives_changes(self) -> None:
        seen = []
        self.directory.current_account.subscribe(seen.append)

        self.directory.login("prof1", "professor123")
        self.directory.login("prof1", "wrong")
        self.directory.logout()

        self.assertEqual([a.id if a else None for a in seen], ["prof1", None])

    def test_login_with_hashed_secrets(self) -> None:
        directory = Directory(hasher=Pbkdf2Secret(rounds=1000))
        acc = directory.register("h", "Hashed", "h@x.com", "Secret1!")
        assert acc is not None
        self.assertNotEqual(acc.credential_secret, "Secret1!")

        directory.logout()
        self.assertIsNotNone(directory.login("h@x.com", "Secret1!"))
        self.assertIsNone(directory.login("h@x.com", "secret1!"))


class TestDirectoryProfile(unittest.TestCase):
    def setUp(self) -> None:
        self.directory = Directory(sample_accounts())

    def test_update_name_only_keeps_other_fields(self) -> None:
        before = self.directory.get_by_id("student1")
        updated = self.directory.update_profile("student1", name="Yosser B.")

        assert before is not None and updated is not None
        self.assertEqual(updated.display_name, "Yosser B.")
        self.assertEqual(updated.email, before.email)
        self.assertEqual(updated.credential_secret, before.credential_secret)
        self.assertEqual(self.directory.get_by_id("student1"), updated)

    def test_update_unknown_account(self) -> None:
        self.assertIsNone(self.directory.update_profile("ghost", name="Nobody"))

    def test_update_refreshes_active_session(self) -> None:
        self.directory.login("student1", "password123")
        updated = self.directory.update_profile("student1", email="yb@x.com")
        self.assertEqual(self.directory.active, updated)

    def test_update_other_account_keeps_session(self) -> None:
        admin = self.directory.login("admin", "admin123")
        self.directory.update_profile("student1", name="Changed")
        self.assertEqual(self.directory.active, admin)

    def test_update_email_to_taken_address(self) -> None:
        self.assertIsNone(self.directory.update_profile("student1", email="admin@tbsuniversity.edu"))
        acc = self.directory.get_by_id("student1")
        assert acc is not None
        self.assertEqual(acc.email, "yosser@tbsuniversity.edu")

    def test_update_secret_changes_login(self) -> None:
        self.directory.update_profile("student1", secret="NewPass1!")
        self.assertIsNone(self.directory.login("student1", "password123"))
        self.assertIsNotNone(self.directory.login("student1", "NewPass1!"))

    def test_verify_secret_leaves_session_alone(self) -> None:
        self.assertTrue(self.directory.verify_secret("student1", "password123"))
        self.assertFalse(self.directory.verify_secret("student1", "wrong"))
        self.assertFalse(self.directory.verify_secret("ghost", "password123"))
        self.assertIsNone(self.directory.active)

    def test_verify_secret_with_hashed_secrets(self) -> None:
        directory = Directory(hasher=Pbkdf2Secret(rounds=1000))
        directory.register("s1", "S", "s@x.com", "Secret1!")
        self.assertTrue(directory.verify_secret("s1", "Secret1!"))
        self.assertFalse(directory.verify_secret("s1", "secret1!"))


class TestDirectoryQueries(unittest.TestCase):
    def test_get_by_role_keeps_insertion_order(self) -> None:
        directory = Directory(sample_accounts())
        directory.register("s2", "B", "b@x.com", "pw")
        directory.register("s3", "A", "a@x.com", "pw", role=Role.STUDENT)
        directory.register("p2", "P", "p@x.com", "pw", role=Role.PROFESSOR)

        students = [a.id for a in directory.get_by_role(Role.STUDENT)]
        self.assertEqual(students, ["student1", "s2", "s3"])
        self.assertEqual([a.id for a in directory.get_by_role(Role.PROFESSOR)], ["prof1", "p2"])

    def test_get_by_id_unknown(self) -> None:
        self.assertIsNone(Directory().get_by_id("missing"))


if __name__ == "__main__":
    unittest.main()
