"""Tests for whoop_health.config module."""

import json

from whoop_health.config import ApiConfig, AuthConfig, Config, DayConfig, get_config_dir


class TestApiConfig:
    """Tests for ApiConfig."""

    def test_default_values(self):
        """Test default API configuration values."""
        config = ApiConfig()
        assert config.base_url == "https://api.prod.whoop.com/developer"
        assert config.timeout_seconds == 30.0
        assert config.max_page_size == 25
        assert config.default_page_size == 25


class TestAuthConfig:
    """Tests for AuthConfig."""

    def test_client_credentials_need_both_values(self):
        assert AuthConfig().has_client_credentials() is False
        assert AuthConfig(client_id="id").has_client_credentials() is False
        assert AuthConfig(client_id="id", client_secret="secret").has_client_credentials() is True

    def test_default_scopes_request_offline(self):
        """Without 'offline' the server issues no refresh token."""
        assert "offline" in AuthConfig().scopes.split()


class TestDayConfig:
    def test_default_cutoff(self):
        assert DayConfig().cutoff_hour == 4


class TestConfig:
    """Tests for main Config class."""

    def test_load_defaults_when_no_file(self, tmp_path, clean_env):
        """Test loading config when file doesn't exist uses defaults."""
        config = Config.load(tmp_path / "nonexistent.json")

        assert config.api.timeout_seconds == 30.0
        assert config.auth.client_id == ""
        assert config.day.cutoff_hour == 4

    def test_load_from_file(self, temp_config_dir, clean_env):
        """Test loading config from file."""
        config = Config.load(temp_config_dir / "config.json")

        assert config.api.timeout_seconds == 10
        assert config.api.default_page_size == 10
        assert config.auth.client_id == "file-client"
        assert config.day.cutoff_hour == 5

    def test_partial_config_uses_defaults(self, tmp_path, clean_env):
        """Test partial config file fills missing values with defaults."""
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({
            "api": {"timeout_seconds": 5}
        }))

        config = Config.load(config_path)

        # Custom value
        assert config.api.timeout_seconds == 5
        # Default value (not in file)
        assert config.api.max_page_size == 25
        # Other sections use defaults
        assert config.day.cutoff_hour == 4

    def test_environment_overrides_file(self, temp_config_dir, clean_env, monkeypatch):
        monkeypatch.setenv("WHOOP_CLIENT_ID", "env-client")
        monkeypatch.setenv("WHOOP_CLIENT_SECRET", "env-secret")

        config = Config.load(temp_config_dir / "config.json")

        assert config.auth.client_id == "env-client"
        assert config.auth.client_secret == "env-secret"
        # Not overridden
        assert config.auth.redirect_uri == "https://localhost/callback"

    def test_save_config(self, tmp_path, clean_env):
        """Test saving config to file."""
        config_path = tmp_path / "config.json"

        config = Config()
        config.day.cutoff_hour = 3
        config.save(config_path)

        # Load and verify
        loaded = Config.load(config_path)
        assert loaded.day.cutoff_hour == 3

    def test_save_never_writes_secret(self, tmp_path, clean_env):
        config_path = tmp_path / "config.json"

        config = Config()
        config.auth.client_id = "id"
        config.auth.client_secret = "very-secret"
        config.save(config_path)

        assert "very-secret" not in config_path.read_text()

    def test_invalid_json_uses_defaults(self, tmp_path, clean_env):
        """Test invalid JSON file falls back to defaults."""
        config_path = tmp_path / "config.json"
        config_path.write_text("{ invalid json }")

        config = Config.load(config_path)
        assert config.api.timeout_seconds == 30.0

    def test_config_dir_follows_xdg(self, tmp_path, monkeypatch):
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert get_config_dir() == tmp_path / "whoop-health"
