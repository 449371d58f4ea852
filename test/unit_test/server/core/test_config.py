"""Unit tests for server configuration settings model.

Tests verify that the Settings model binds environment variables and that the
grouped configuration views are built from them.
"""

from pathlib import Path

import pytest

from approv.server.core.config import (
    ClerkConfig,
    CORSConfig,
    DropboxConfig,
    EmailConfig,
    MondayConfig,
    Settings,
    StorageConfig,
)

THIRD_PARTY_ENV = (
    "RESEND_API_KEY",
    "CLERK_SECRET_KEY",
    "CLERK_JWKS_URL",
    "CLERK_WEBHOOK_SECRET",
    "MONDAY_CLIENT_ID",
    "MONDAY_CLIENT_SECRET",
    "MONDAY_WEBHOOK_SECRET",
    "DROPBOX_APP_KEY",
    "DROPBOX_APP_SECRET",
    "R2_ACCOUNT_ID",
    "R2_ACCESS_KEY_ID",
    "R2_SECRET_ACCESS_KEY",
)


@pytest.fixture
def env_example_path() -> Path:
    """Get path to .env.example file."""
    return Path(__file__).resolve().parents[4] / ".env.example"


@pytest.fixture
def clean_env(monkeypatch):
    for name in THIRD_PARTY_ENV + ("APP_ENV", "APP_URL", "DATABASE_URL", "APPROV_SERVER_PORT", "CORS_ORIGINS"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def make_settings() -> Settings:
    return Settings(_env_file=None)


class TestSettingsBinding:
    """Test Settings model environment variable binding."""

    def test_defaults(self, clean_env):
        settings = make_settings()
        assert settings.app_env == "development"
        assert settings.server_port == 3001
        assert settings.database_url.startswith("postgresql+asyncpg://")
        assert settings.is_development is True
        assert settings.is_production is False

    def test_environment_overrides(self, clean_env):
        clean_env.setenv("APP_ENV", "production")
        clean_env.setenv("APPROV_SERVER_PORT", "8080")
        clean_env.setenv("APP_URL", "https://app.approv.co.uk")

        settings = make_settings()

        assert settings.is_production is True
        assert settings.server_port == 8080
        assert settings.app_url == "https://app.approv.co.uk"

    def test_cors_origins_parse_json_list(self, clean_env):
        clean_env.setenv("CORS_ORIGINS", '["https://app.approv.co.uk", "https://staging.approv.co.uk"]')
        assert make_settings().cors.origins == ["https://app.approv.co.uk", "https://staging.approv.co.uk"]

    def test_env_example_lists_every_setting(self, env_example_path):
        names = {
            line.split("=", 1)[0].strip()
            for line in env_example_path.read_text().splitlines()
            if line.strip() and not line.startswith("#") and "=" in line
        }
        for field in Settings.model_fields.values():
            assert field.alias in names, field.alias


class TestGroupedConfigs:
    """Test the grouped configuration properties."""

    def test_email(self, clean_env):
        clean_env.setenv("RESEND_API_KEY", "re_123")
        email = make_settings().email
        assert isinstance(email, EmailConfig)
        assert email.api_key == "re_123"
        assert email.from_email == "notifications@approv.co.uk"

    def test_clerk(self, clean_env):
        clean_env.setenv("CLERK_JWKS_URL", "https://clerk.example.com/.well-known/jwks.json")
        clerk = make_settings().clerk
        assert isinstance(clerk, ClerkConfig)
        assert clerk.jwks_url == "https://clerk.example.com/.well-known/jwks.json"
        assert clerk.secret_key is None

    def test_monday_and_dropbox(self, clean_env):
        clean_env.setenv("MONDAY_CLIENT_ID", "monday-id")
        clean_env.setenv("DROPBOX_APP_KEY", "dropbox-key")
        settings = make_settings()
        assert isinstance(settings.monday, MondayConfig) and settings.monday.client_id == "monday-id"
        assert isinstance(settings.dropbox, DropboxConfig) and settings.dropbox.app_key == "dropbox-key"

    def test_storage_configured_needs_all_credentials(self, clean_env):
        clean_env.setenv("R2_ACCOUNT_ID", "account")
        clean_env.setenv("R2_ACCESS_KEY_ID", "key")
        assert make_settings().storage.configured is False

        clean_env.setenv("R2_SECRET_ACCESS_KEY", "secret")
        storage = make_settings().storage
        assert isinstance(storage, StorageConfig)
        assert storage.configured is True
        assert storage.bucket_name == "approv-files"

    def test_cors_defaults(self, clean_env):
        cors = make_settings().cors
        assert isinstance(cors, CORSConfig)
        assert "X-CSRF-Token" in cors.allow_headers
        assert "X-Portal-Token" in cors.allow_headers
