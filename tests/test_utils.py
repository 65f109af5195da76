import logging
import os
import unittest
from decimal import Decimal
from unittest import mock

from rich.logging import RichHandler

from shop_case import ROOT  # noqa: F401  (puts src/ on sys.path)

from db.models import User
from utils.config import Settings, load_settings
from utils.pure import generate_markdown_table, key_value_table, money
from utils.security import hash_password, verify_password
from utils.state import GlobalState


class PureTestCase(unittest.TestCase):
    def test_money(self):
        self.assertEqual(money(Decimal("1234.5")), "$1,234.50")
        self.assertEqual(money(Decimal("0.125")), "$0.13")
        self.assertEqual(money(Decimal("7")), "$7.00")

    def test_markdown_table(self):
        md = generate_markdown_table(["A", "B"], [[1, "x"], [2, "y"]], ["l", "r"])
        self.assertEqual(
            md.splitlines(),
            ["| A | B |", "| :--- | ---: |", "| 1 | x |", "| 2 | y |"],
        )
        # first row promoted to header
        self.assertTrue(generate_markdown_table(None, [["k", "v"]]).startswith("| k | v |"))
        self.assertEqual(generate_markdown_table(None, []), "")
        with self.assertRaises(ValueError):
            generate_markdown_table(["A"], [], ["l", "r"])
        self.assertIn("| Price | $1.00 |", key_value_table([["Price", "$1.00"]]))


class SecurityTestCase(unittest.TestCase):
    def test_hash_and_verify(self):
        digest, salt = hash_password("s3cret!")
        self.assertTrue(verify_password("s3cret!", digest, salt))
        self.assertFalse(verify_password("s3cret", digest, salt))
        # fresh salt every time
        self.assertNotEqual(hash_password("s3cret!")[0], digest)


class ConfigTestCase(unittest.TestCase):
    def test_defaults(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            settings = load_settings()
        self.assertEqual(settings, Settings())
        self.assertEqual(settings.env, "development")

    def test_from_environment(self):
        env = {
            "MEDSTORE_DB_PATH": "/tmp/shop.sqlite",
            "MEDSTORE_ENV": "test",
            "MEDSTORE_SEED_DEMO": "no",
            "MEDSTORE_DB_TIMEOUT": "2.5",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            settings = load_settings()
        self.assertEqual(settings.db_path, "/tmp/shop.sqlite")
        self.assertEqual(settings.env, "test")
        self.assertFalse(settings.seed_demo)
        self.assertEqual(settings.db_timeout, 2.5)

    def test_bad_values_fall_back(self):
        env = {"MEDSTORE_ENV": "staging", "MEDSTORE_SEED_DEMO": "maybe", "MEDSTORE_DB_TIMEOUT": "soon"}
        with mock.patch.dict(os.environ, env, clear=True):
            with self.assertLogs("utils.config", level="WARNING") as logs:
                settings = load_settings()
        self.assertEqual(len(logs.records), 3)
        self.assertEqual(settings.env, "development")
        self.assertTrue(settings.seed_demo)
        self.assertEqual(settings.db_timeout, 30.0)

    def test_warnings_go_through_rich(self):
        handlers = logging.getLogger("utils.config").handlers
        self.assertTrue(any(isinstance(h, RichHandler) for h in handlers))


class StateTestCase(unittest.TestCase):
    def test_login_logout(self):
        state = GlobalState()
        self.assertFalse(state.logged_in)

        state.login(User(1, "admin", "admin@medstore.local", "admin", "h", "s", None))
        self.assertTrue(state.logged_in)
        self.assertTrue(state.is_admin)

        state.logout()
        self.assertEqual((state.uid, state.username, state.role), (None, None, None))


if __name__ == "__main__":
    unittest.main()
