"""Core WHOOP utilities shared by the CLI and library callers.

Key responsibilities:
- Token file location
- Tracker-day boundary (the day rolls over at a local cutoff hour, not midnight)
- Date range construction for per-day queries
- Wiring an authenticated API client
"""

import os
from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path
from typing import Optional

from .config import Config, get_config_dir
from .errors import ValidationError


# =============================================================================
# Path Configuration
# =============================================================================

def get_token_path() -> Path:
    """Get credential file path.

    Configurable via WHOOP_TOKEN_FILE environment variable.
    Defaults to tokens.json in the config directory.
    """
    if env_file := os.environ.get("WHOOP_TOKEN_FILE"):
        return Path(env_file)
    return get_config_dir() / "tokens.json"


# =============================================================================
# Tracker Day
# =============================================================================

def whoop_day(now: Optional[datetime] = None, cutoff_hour: int = 4) -> date:
    """Tracker day containing `now` (local time).

    A moment before the cutoff hour still belongs to the previous day, so
    checking at 1am shows the day that is ending rather than an empty one.
    """
    if now is None:
        now = datetime.now()
    return (now - timedelta(hours=cutoff_hour)).date()


def day_of(moment: datetime, cutoff_hour: int = 4) -> date:
    """Tracker day of an already-localized timestamp."""
    return (moment - timedelta(hours=cutoff_hour)).date()


def days_ago(n: int, today: Optional[date] = None, cutoff_hour: int = 4) -> date:
    """Tracker day n days before today."""
    if today is None:
        today = whoop_day(cutoff_hour=cutoff_hour)
    return today - timedelta(days=n)


def to_iso(moment: datetime) -> str:
    """UTC ISO 8601 with milliseconds and Z suffix, the format WHOOP expects."""
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def day_range(day: date, cutoff_hour: int = 4) -> tuple[str, str]:
    """[start, end) of a tracker day as UTC ISO strings.

    The day runs from the local cutoff hour to the same hour the next day.
    """
    # Naive astimezone() resolves the local offset for that date, DST included
    start = datetime.combine(day, time(hour=cutoff_hour)).astimezone()
    end = datetime.combine(day + timedelta(days=1), time(hour=cutoff_hour)).astimezone()
    return to_iso(start), to_iso(end)


def span_range(first: date, last: date, cutoff_hour: int = 4) -> tuple[str, str]:
    """[start, end) covering the tracker days first..last inclusive."""
    start, _ = day_range(first, cutoff_hour)
    _, end = day_range(last, cutoff_hour)
    return start, end


def now_iso() -> str:
    return to_iso(datetime.now(timezone.utc))


def parse_date(value: str) -> date:
    """Parse YYYY-MM-DD, raising ValidationError on anything else."""
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError("Invalid date format. Use YYYY-MM-DD")


def parse_datetime(value: str, flag: str = "datetime") -> str:
    """Validate an ISO 8601 datetime and return it unchanged."""
    try:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        raise ValidationError(f"Invalid {flag}. Use ISO format like 2026-02-24T04:00:00.000Z")
    return value


# =============================================================================
# WHOOP API Client
# =============================================================================

def get_client(config: Optional[Config] = None):
    """Get an authenticated WHOOP API client.

    Tokens are stored in the config directory and refreshed transparently
    when they expire.

    Returns:
        WhoopClient backed by the on-disk credential store.
    """
    import requests

    from .client import WhoopClient
    from .oauth import OAuthClient
    from .tokens import FileCredentialStore, TokenManager

    if config is None:
        config = Config.load()

    session = requests.Session()
    store = FileCredentialStore(get_token_path())
    oauth = OAuthClient(config.auth, session=session, timeout=config.api.timeout_seconds)
    tokens = TokenManager(store, oauth)
    return WhoopClient(tokens, config, session=session)
