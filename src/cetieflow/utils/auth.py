"""Authentication against Azure AD for Microsoft Graph."""
import os
from pathlib import Path
from typing import List, Optional

import msal
import requests

from .exceptions import AuthCancelledError, AuthError, InteractionRequiredError, NetworkError
from .logger import get_logger

logger = get_logger()

# Error codes for which only a user interaction can produce a token
_INTERACTION_ERRORS = {"interaction_required", "login_required", "consent_required", "invalid_grant"}
_CANCEL_ERRORS = {"access_denied", "user_canceled", "user_cancelled"}


class CredentialProvider:
    """Yields Graph bearer tokens from a persisted MSAL token cache.

    Mirrors the tablet flow: reuse the signed-in account silently, fall back
    to an interactive sign-in when Azure AD asks for one (MFA, expired
    refresh token), and report network failures separately.
    """

    def __init__(
        self,
        client_id: str,
        authority: str,
        scopes: List[str],
        cache_path: Path,
        app: Optional[msal.PublicClientApplication] = None
    ):
        self.authority = authority
        self.scopes = list(scopes)
        self.cache_path = Path(cache_path)
        self.cache = msal.SerializableTokenCache()
        self._load_cache()
        self.app = app or msal.PublicClientApplication(
            client_id,
            authority=authority,
            token_cache=self.cache
        )

    def get_current_account(self) -> Optional[dict]:
        """Return the single signed-in account, if any."""
        accounts = self.app.get_accounts()
        if not accounts:
            return None
        if len(accounts) > 1:
            logger.warning(f"{len(accounts)} cached accounts, using {accounts[0].get('username')}")
        return accounts[0]

    def sign_in_interactive(self, scopes: Optional[List[str]] = None) -> str:
        """Run the browser sign-in and return an access token."""
        logger.info("Starting interactive sign-in")
        try:
            result = self.app.acquire_token_interactive(scopes or self.scopes, prompt="select_account")
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Network error during sign-in: {e}")
        token = self._token_from(result, interactive=True)
        logger.info("Interactive sign-in successful")
        return token

    def acquire_silent(self, scopes: Optional[List[str]] = None, authority: Optional[str] = None) -> str:
        """Return a token for the cached account without user interaction."""
        account = self.get_current_account()
        if account is None:
            raise InteractionRequiredError("No signed-in account")
        try:
            result = self.app.acquire_token_silent_with_error(
                scopes or self.scopes,
                account,
                authority=authority or self.authority
            )
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Network error, check the Internet connection: {e}")
        if result is None:
            raise InteractionRequiredError("No cached token for the requested scopes")
        return self._token_from(result, interactive=False)

    def get_token(self) -> str:
        """Silent acquisition first, interactive sign-in when required."""
        if self.get_current_account() is None:
            logger.info("No account, interactive sign-in")
            return self.sign_in_interactive()
        try:
            return self.acquire_silent()
        except InteractionRequiredError as e:
            logger.info(f"Interactive authentication required: {e}")
            return self.sign_in_interactive()

    def sign_out(self) -> None:
        for account in self.app.get_accounts():
            self.app.remove_account(account)
        self._save_cache(force=True)
        logger.info("Signed out")

    def __call__(self) -> str:
        return self.get_token()

    def _token_from(self, result: dict, interactive: bool) -> str:
        if "access_token" in result:
            self._save_cache()
            return result["access_token"]

        error = result.get("error", "unknown_error")
        description = result.get("error_description", "")
        if error in _CANCEL_ERRORS:
            raise AuthCancelledError("Sign-in cancelled by the user")
        if error in _INTERACTION_ERRORS and not interactive:
            raise InteractionRequiredError(f"{error}: {description}")
        raise AuthError(f"Authentication failed ({error}): {description}")

    def _load_cache(self) -> None:
        if not self.cache_path.exists():
            return
        try:
            self.cache.deserialize(self.cache_path.read_text(encoding="utf-8"))
            logger.debug("Loaded MSAL token cache")
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load token cache from {self.cache_path}: {e}")
            logger.info("Will delete corrupted token cache and sign in again")
            try:
                os.remove(self.cache_path)
            except OSError:
                pass

    def _save_cache(self, force: bool = False) -> None:
        if not (force or self.cache.has_state_changed):
            return
        self.cache_path.parent.mkdir(parents=True, exist_ok=True)
        self.cache_path.write_text(self.cache.serialize(), encoding="utf-8")
        logger.debug(f"Saved MSAL token cache to {self.cache_path}")
