"""Credential storage and token lifecycle.

The store is the single writer of the credential file. TokenManager borrows
it to hand out a non-expired access token, refreshing through the OAuth
collaborator when the stored one is inside the expiry margin.

Usage:
    tokens = TokenManager(FileCredentialStore(get_token_path()), oauth)
    credential = tokens.get_valid_credential()
"""

import logging
import os
import tempfile
import threading
import time
from pathlib import Path
from typing import Callable, Optional, Protocol

import pydantic
from pydantic import BaseModel

from .errors import AuthRequired
from .models import Credential

logger = logging.getLogger(__name__)


class CredentialStore(Protocol):
    def load(self) -> Optional[Credential]: ...

    def save(self, credential: Credential) -> None: ...

    def clear(self) -> None: ...


class TokenExchanger(Protocol):
    def refresh(self, refresh_token: str) -> dict: ...


# =============================================================================
# File Store
# =============================================================================

class FileCredentialStore:
    """Credential persisted as JSON, readable only by the owning user.

    Writes go to a temp file in the same directory and are moved into place
    with os.replace, so readers never see a half-written file.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Optional[Credential]:
        """Stored credential, or None if absent, cleared or unreadable."""
        if not self.path.exists():
            return None

        try:
            text = self.path.read_text()
        except OSError as e:
            logger.warning("Could not read token file %s: %s", self.path, e)
            return None

        if not text.strip():
            return None

        try:
            return Credential.model_validate_json(text)
        except pydantic.ValidationError as e:
            logger.warning("Ignoring malformed token file %s: %s", self.path, e)
            return None

    def save(self, credential: Credential) -> None:
        """Atomically replace the stored credential."""
        self.path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)

        # mkstemp creates the file with mode 0600
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".tokens-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                f.write(credential.model_dump_json(indent=2))
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

        logger.debug("Saved credential to %s", self.path)

    def clear(self) -> None:
        """Empty the token file. The file itself stays in place."""
        if self.path.exists():
            with open(self.path, "w"):
                pass
            logger.debug("Cleared credential at %s", self.path)


# =============================================================================
# Token Lifecycle
# =============================================================================

class TokenStatus(BaseModel):
    authenticated: bool
    expires_at: Optional[int] = None
    expired: Optional[bool] = None


class TokenManager:
    """Keeps the stored credential valid across unattended runs.

    Refreshes are serialized: concurrent callers that find an expired token
    wait for the one in-flight refresh and reuse its result, so a rotated
    refresh token is never spent twice.
    """

    def __init__(
        self,
        store: CredentialStore,
        oauth: TokenExchanger,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.oauth = oauth
        self.clock = clock
        self._refresh_lock = threading.Lock()

    def _load_required(self) -> Credential:
        credential = self.store.load()
        if credential is None:
            raise AuthRequired("Not authenticated. Run: whoop auth login")
        return credential

    def get_valid_credential(self) -> Credential:
        """Current credential, refreshed first if it is expired.

        Raises:
            AuthRequired: No credential is stored.
            AuthRefreshFailed: The refresh token was rejected. Store unchanged.
        """
        credential = self._load_required()
        if not credential.is_expired(self.clock()):
            return credential

        with self._refresh_lock:
            # Another caller may have refreshed while we waited
            credential = self._load_required()
            if not credential.is_expired(self.clock()):
                return credential
            return self._refresh(credential)

    def refresh(self) -> Credential:
        """Refresh now, regardless of expiry."""
        with self._refresh_lock:
            return self._refresh(self._load_required())

    def _refresh(self, credential: Credential) -> Credential:
        logger.info("Access token expired, refreshing")
        data = self.oauth.refresh(credential.refresh_token)
        new_credential = Credential.from_token_response(data, now=self.clock())
        if not new_credential.refresh_token:
            # Server did not rotate; keep using the old one
            new_credential = new_credential.model_copy(update={"refresh_token": credential.refresh_token})
        self.store.save(new_credential)
        return new_credential

    def store_token_response(self, data: dict) -> Credential:
        """Persist the result of an authorization-code exchange."""
        credential = Credential.from_token_response(data, now=self.clock())
        self.store.save(credential)
        return credential

    def status(self) -> TokenStatus:
        """Report expiry state. Never triggers a refresh."""
        credential = self.store.load()
        if credential is None:
            return TokenStatus(authenticated=False)
        return TokenStatus(
            authenticated=True,
            expires_at=credential.expires_at,
            expired=credential.is_expired(self.clock()),
        )

    def logout(self) -> None:
        self.store.clear()
