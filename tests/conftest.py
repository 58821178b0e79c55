"""Shared test fixtures for whoop_health tests."""

import json
import time
from pathlib import Path

import pytest

from fakes import NOW, FakeOAuth, FakeSession, MemoryCredentialStore, make_credential
from whoop_health.client import WhoopClient
from whoop_health.config import Config
from whoop_health.tokens import TokenManager


@pytest.fixture(autouse=True)
def local_zone_utc(monkeypatch):
    """Recoveries fall back to the machine's zone; pin it so days are stable."""
    monkeypatch.setenv("TZ", "UTC")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


@pytest.fixture
def store():
    """Store holding a credential valid for an hour."""
    return MemoryCredentialStore(make_credential())


@pytest.fixture
def oauth():
    return FakeOAuth()


@pytest.fixture
def tokens(store, oauth):
    return TokenManager(store, oauth, clock=lambda: NOW)


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def client(tokens, session):
    return WhoopClient(tokens, Config(), session=session)


@pytest.fixture
def fixtures_dir() -> Path:
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def temp_config_dir(tmp_path):
    """Temporary config directory with a test config."""
    config = {
        "api": {
            "timeout_seconds": 10,
            "default_page_size": 10,
        },
        "auth": {
            "client_id": "file-client",
            "redirect_uri": "https://localhost/callback",
        },
        "day": {
            "cutoff_hour": 5,
        },
    }
    (tmp_path / "config.json").write_text(json.dumps(config))
    yield tmp_path


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """No WHOOP_* variables leak in from the developer's shell."""
    for name in ("WHOOP_CLIENT_ID", "WHOOP_CLIENT_SECRET", "WHOOP_REDIRECT_URI"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.setenv("WHOOP_TOKEN_FILE", str(tmp_path / "tokens.json"))
