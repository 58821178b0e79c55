"""In-memory collaborators standing in for the token file, OAuth server and HTTP session."""

import json
import threading
import time
from typing import Optional
from urllib.parse import urlparse

from whoop_health.errors import AuthRefreshFailed
from whoop_health.models import Credential

NOW = 1_736_000_000.0


class MemoryCredentialStore:
    """In-memory stand-in for FileCredentialStore."""

    def __init__(self, credential: Optional[Credential] = None):
        self.credential = credential
        self.saves = 0

    def load(self) -> Optional[Credential]:
        return self.credential

    def save(self, credential: Credential) -> None:
        self.credential = credential
        self.saves += 1

    def clear(self) -> None:
        self.credential = None


class FakeOAuth:
    """Token exchanger that counts refresh calls."""

    def __init__(self, fail: bool = False, delay: float = 0.0, rotate: bool = True):
        self.fail = fail
        self.delay = delay
        self.rotate = rotate
        self.calls = []
        self._lock = threading.Lock()

    def refresh(self, refresh_token: str) -> dict:
        with self._lock:
            self.calls.append(refresh_token)
            n = len(self.calls)
        if self.delay:
            time.sleep(self.delay)
        if self.fail:
            raise AuthRefreshFailed("Token refresh failed", status=400)
        return {
            "access_token": f"access-{n}",
            "refresh_token": f"refresh-{n}" if self.rotate else None,
            "expires_in": 3600,
            "token_type": "bearer",
            "scope": "offline read:sleep",
        }


class FakeResponse:
    def __init__(self, status_code: int = 200, payload=None, text: str = ""):
        self.status_code = status_code
        self._payload = payload
        self.text = text or (json.dumps(payload) if payload is not None else "")

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self):
        return self._payload


class FakeSession:
    """Routes requests by URL path to queued FakeResponses and records every call."""

    def __init__(self, routes: Optional[dict] = None):
        self.routes = routes or {}
        self.calls = []
        self._lock = threading.Lock()

    def _respond(self, method: str, url: str, **kwargs):
        path = urlparse(url).path
        with self._lock:
            self.calls.append({"method": method, "path": path, **kwargs})
            queued = self.routes.get(path)
            if queued is None:
                return FakeResponse(404, {"message": "not found"})
            if isinstance(queued, list):
                return queued.pop(0) if len(queued) > 1 else queued[0]
            return queued

    def request(self, method, url, params=None, headers=None, timeout=None):
        return self._respond(method, url, params=params, headers=headers, timeout=timeout)

    def post(self, url, data=None, headers=None, timeout=None):
        return self._respond("POST", url, data=data, headers=headers, timeout=timeout)

    def calls_to(self, path: str) -> list:
        return [c for c in self.calls if c["path"] == path]


def make_credential(expires_in: float = 3600, now: float = NOW) -> Credential:
    return Credential(
        access_token="access-0",
        refresh_token="refresh-0",
        token_type="bearer",
        scope="offline read:sleep read:recovery",
        expires_at=int(now + expires_in),
    )

