"""Configuration management for WHOOP health access.

Provides typed configuration with sensible defaults. Config is loaded from
~/.config/whoop-health/config.json (XDG compliant). OAuth client credentials
are normally supplied through the environment and override the file:

    WHOOP_CLIENT_ID, WHOOP_CLIENT_SECRET, WHOOP_REDIRECT_URI

Usage:
    config = Config.load()
    if config.auth.has_client_credentials():
        # ... token exchange
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def get_config_dir() -> Path:
    """Get config directory (XDG compliant)."""
    if env_dir := os.environ.get("XDG_CONFIG_HOME"):
        return Path(env_dir) / "whoop-health"
    return Path.home() / ".config" / "whoop-health"


@dataclass
class ApiConfig:
    """Configuration for the WHOOP developer API."""

    base_url: str = "https://api.prod.whoop.com/developer"
    """Root of all resource endpoints."""

    timeout_seconds: float = 30.0
    """Per-request network timeout."""

    max_page_size: int = 25
    """Largest page the server accepts for collection queries."""

    default_page_size: int = 25
    """Page size used when the caller does not pass one."""


@dataclass
class AuthConfig:
    """Configuration for the OAuth2 authorization server."""

    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = ""

    auth_url: str = "https://api.prod.whoop.com/oauth/oauth2/auth"
    token_url: str = "https://api.prod.whoop.com/oauth/oauth2/token"

    scopes: str = (
        "read:profile read:body_measurement read:workout "
        "read:recovery read:sleep read:cycles offline"
    )
    """Space-delimited scopes requested at login. 'offline' yields a refresh token."""

    def has_client_credentials(self) -> bool:
        """Check if client id and secret are both set."""
        return bool(self.client_id and self.client_secret)


@dataclass
class DayConfig:
    """Configuration for the tracker's day boundary."""

    cutoff_hour: int = 4
    """Local hour at which a new tracker day starts. Earlier moments belong to the previous day."""


@dataclass
class Config:
    """Main configuration container."""

    api: ApiConfig = field(default_factory=ApiConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    day: DayConfig = field(default_factory=DayConfig)

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "Config":
        """Load config from file, using defaults for missing values.

        Args:
            path: Config file path. If None, uses default XDG location.

        Returns:
            Config instance with values from file merged with defaults,
            then OAuth client values from the environment applied on top.
        """
        if path is None:
            path = get_config_dir() / "config.json"

        config = cls()

        raw = {}
        if path.exists():
            try:
                with open(path) as f:
                    raw = json.load(f)
            except (json.JSONDecodeError, OSError) as e:
                # Log but don't fail - use defaults
                logger.warning("Could not load config from %s: %s", path, e)
                raw = {}

        if "api" in raw:
            api_data = raw["api"]
            config.api = ApiConfig(
                base_url=api_data.get("base_url", config.api.base_url),
                timeout_seconds=api_data.get("timeout_seconds", config.api.timeout_seconds),
                max_page_size=api_data.get("max_page_size", config.api.max_page_size),
                default_page_size=api_data.get("default_page_size", config.api.default_page_size),
            )

        if "auth" in raw:
            auth_data = raw["auth"]
            config.auth = AuthConfig(
                client_id=auth_data.get("client_id", config.auth.client_id),
                client_secret=auth_data.get("client_secret", config.auth.client_secret),
                redirect_uri=auth_data.get("redirect_uri", config.auth.redirect_uri),
                auth_url=auth_data.get("auth_url", config.auth.auth_url),
                token_url=auth_data.get("token_url", config.auth.token_url),
                scopes=auth_data.get("scopes", config.auth.scopes),
            )

        if "day" in raw:
            day_data = raw["day"]
            config.day = DayConfig(
                cutoff_hour=day_data.get("cutoff_hour", config.day.cutoff_hour),
            )

        config.apply_env()
        return config

    def apply_env(self) -> None:
        """Override OAuth client settings from WHOOP_* environment variables."""
        if client_id := os.environ.get("WHOOP_CLIENT_ID"):
            self.auth.client_id = client_id
        if client_secret := os.environ.get("WHOOP_CLIENT_SECRET"):
            self.auth.client_secret = client_secret
        if redirect_uri := os.environ.get("WHOOP_REDIRECT_URI"):
            self.auth.redirect_uri = redirect_uri

    def save(self, path: Optional[Path] = None) -> None:
        """Save current config to file.

        The client secret is never written; keep it in the environment.

        Args:
            path: Config file path. If None, uses default XDG location.
        """
        if path is None:
            path = get_config_dir() / "config.json"

        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "api": {
                "base_url": self.api.base_url,
                "timeout_seconds": self.api.timeout_seconds,
                "max_page_size": self.api.max_page_size,
                "default_page_size": self.api.default_page_size,
            },
            "auth": {
                "client_id": self.auth.client_id,
                "redirect_uri": self.auth.redirect_uri,
                "auth_url": self.auth.auth_url,
                "token_url": self.auth.token_url,
                "scopes": self.auth.scopes,
            },
            "day": {
                "cutoff_hour": self.day.cutoff_hour,
            },
        }

        with open(path, "w") as f:
            json.dump(data, f, indent=2)
