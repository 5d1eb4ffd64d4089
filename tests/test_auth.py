"""Tests for the MSAL credential provider."""
import tempfile
import unittest
from pathlib import Path

import requests

from cetieflow.utils.auth import CredentialProvider
from cetieflow.utils.exceptions import AuthCancelledError, AuthError, InteractionRequiredError, NetworkError

ACCOUNT = {"username": "tech@cetie.fr", "home_account_id": "1"}


class FakeApp:
    def __init__(self, accounts=None, silent=None, interactive=None):
        self.accounts = list(accounts or [])
        self.silent = silent
        self.interactive = interactive or {"access_token": "interactive-token"}
        self.interactive_calls = 0

    def get_accounts(self):
        return list(self.accounts)

    def acquire_token_silent_with_error(self, scopes, account, authority=None):
        if isinstance(self.silent, Exception):
            raise self.silent
        return self.silent

    def acquire_token_interactive(self, scopes, prompt=None):
        self.interactive_calls += 1
        if isinstance(self.interactive, Exception):
            raise self.interactive
        return self.interactive

    def remove_account(self, account):
        self.accounts.remove(account)


class TestCredentialProvider(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.cache_path = Path(self.tmp.name) / "msal_cache.json"

    def _provider(self, app):
        return CredentialProvider(
            "client", "https://login.microsoftonline.com/t", ["Files.ReadWrite.All"], self.cache_path, app=app
        )

    def test_silent_token_for_cached_account(self):
        app = FakeApp(accounts=[ACCOUNT], silent={"access_token": "silent-token"})
        self.assertEqual(self._provider(app).get_token(), "silent-token")
        self.assertEqual(app.interactive_calls, 0)

    def test_no_account_goes_interactive(self):
        app = FakeApp()
        self.assertEqual(self._provider(app)(), "interactive-token")
        self.assertEqual(app.interactive_calls, 1)

    def test_interaction_required_falls_back(self):
        app = FakeApp(accounts=[ACCOUNT], silent={"error": "invalid_grant", "error_description": "MFA"})
        self.assertEqual(self._provider(app).get_token(), "interactive-token")

    def test_empty_silent_result_falls_back(self):
        app = FakeApp(accounts=[ACCOUNT], silent=None)
        self.assertEqual(self._provider(app).get_token(), "interactive-token")

    def test_acquire_silent_raises_interaction_required(self):
        app = FakeApp(accounts=[ACCOUNT], silent={"error": "interaction_required"})
        with self.assertRaises(InteractionRequiredError):
            self._provider(app).acquire_silent()

    def test_network_failure(self):
        app = FakeApp(accounts=[ACCOUNT], silent=requests.exceptions.ConnectionError("offline"))
        with self.assertRaises(NetworkError):
            self._provider(app).get_token()

    def test_cancelled_sign_in(self):
        app = FakeApp(interactive={"error": "access_denied", "error_description": "user cancelled"})
        with self.assertRaises(AuthCancelledError):
            self._provider(app).get_token()

    def test_other_failure(self):
        app = FakeApp(interactive={"error": "invalid_client", "error_description": "bad app"})
        with self.assertRaises(AuthError) as ctx:
            self._provider(app).get_token()
        self.assertNotIsInstance(ctx.exception, AuthCancelledError)

    def test_sign_out_removes_accounts(self):
        app = FakeApp(accounts=[ACCOUNT])
        provider = self._provider(app)
        provider.sign_out()
        self.assertIsNone(provider.get_current_account())
        self.assertTrue(self.cache_path.exists())

    def test_corrupt_cache_is_deleted(self):
        self.cache_path.write_text("{corrupt", encoding="utf-8")
        self._provider(FakeApp())
        self.assertFalse(self.cache_path.exists())


if __name__ == "__main__":
    unittest.main()
