"""OAuth2 token exchange with the WHOOP authorization server.

Handles the authorization-code grant used by interactive login and the
refresh-token grant used by TokenManager. Client credentials come from
AuthConfig (normally the WHOOP_CLIENT_* environment variables).
"""

import logging
import secrets
import webbrowser
from typing import Callable, Optional
from urllib.parse import parse_qs, urlencode, urlparse

import requests

from .config import AuthConfig
from .errors import AuthRefreshFailed, AuthRequired, RemoteRequestFailed
from .models import Credential

logger = logging.getLogger(__name__)


class OAuthClient:
    """Token endpoint client."""

    def __init__(
        self,
        config: AuthConfig,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
    ):
        self.config = config
        self.session = session or requests.Session()
        self.timeout = timeout

    def _require_client(self, need_redirect: bool = False) -> None:
        if not self.config.has_client_credentials():
            raise AuthRequired("Missing WHOOP_CLIENT_ID or WHOOP_CLIENT_SECRET in environment")
        if need_redirect and not self.config.redirect_uri:
            raise AuthRequired("Missing WHOOP_REDIRECT_URI in environment")

    def authorization_url(self, state: str) -> str:
        """Browser URL that starts the authorization-code flow."""
        self._require_client(need_redirect=True)
        query = urlencode({
            "client_id": self.config.client_id,
            "redirect_uri": self.config.redirect_uri,
            "response_type": "code",
            "scope": self.config.scopes,
            "state": state,
        })
        return f"{self.config.auth_url}?{query}"

    def _post_token(self, form: dict) -> requests.Response:
        try:
            return self.session.post(
                self.config.token_url,
                data=form,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise RemoteRequestFailed(f"Token endpoint unreachable: {e}")

    def exchange_code(self, code: str) -> dict:
        """Trade an authorization code for a token response."""
        self._require_client(need_redirect=True)
        response = self._post_token({
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.config.redirect_uri,
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
        })
        if not response.ok:
            raise AuthRequired(f"Token exchange failed: {response.text}", status=response.status_code)
        return response.json()

    def refresh(self, refresh_token: str) -> dict:
        """Trade a refresh token for a new token pair.

        Raises:
            AuthRefreshFailed: The server rejected the refresh token.
        """
        self._require_client()
        response = self._post_token({
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "scope": "offline",
        })
        if not response.ok:
            raise AuthRefreshFailed(
                "Token refresh failed. Run: whoop auth login",
                status=response.status_code,
            )
        return response.json()


def parse_callback(callback_url: str, expected_state: str) -> str:
    """Extract the authorization code from a pasted redirect URL."""
    query = parse_qs(urlparse(callback_url.strip()).query)
    code = (query.get("code") or [None])[0]
    returned_state = (query.get("state") or [None])[0]

    if not code:
        raise AuthRequired("No authorization code in callback URL")
    if returned_state != expected_state:
        raise AuthRequired("OAuth state mismatch")
    return code


def login(
    tokens,
    oauth: OAuthClient,
    prompt: Callable[[str], str] = input,
    open_browser: Callable[[str], bool] = webbrowser.open,
) -> Credential:
    """Interactive authorization: browser consent, pasted callback, code exchange.

    Args:
        tokens: TokenManager that will persist the new credential.
        oauth: Token endpoint client.
        prompt: Reads the callback URL from the user.
        open_browser: Opens the consent page.
    """
    state = secrets.token_hex(16)
    url = oauth.authorization_url(state)

    print("Opening browser for authorization...")
    print(f"If it does not open, visit:\n  {url}")
    open_browser(url)

    callback_url = prompt("\nPaste the callback URL here: ")
    code = parse_callback(callback_url, state)

    credential = tokens.store_token_response(oauth.exchange_code(code))
    logger.info("Authorization complete, token expires at %s", credential.expires_at)
    return credential
