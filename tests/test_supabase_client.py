"""
Tests for Supabase client configuration
"""

from unittest.mock import MagicMock

import pytest

import supabase_client
from profile_store import ProfileStore

ENV_VARS = supabase_client.URL_VARS + supabase_client.ANON_KEY_VARS + supabase_client.SERVICE_KEY_VARS


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    supabase_client.reset_clients()
    yield
    supabase_client.reset_clients()


@pytest.fixture
def created(monkeypatch):
    calls = []
    monkeypatch.setattr(supabase_client, "create_client", lambda url, key: calls.append((url, key)) or MagicMock())
    return calls


class TestSettings:
    """Test environment lookup"""

    def test_missing_anon_key(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")

        with pytest.raises(ValueError, match="SUPABASE_ANON_KEY"):
            supabase_client.get_supabase_settings()

    def test_missing_service_key(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
        monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")

        with pytest.raises(ValueError, match="SUPABASE_SERVICE_KEY"):
            supabase_client.get_supabase_settings(admin=True)

    def test_web_app_variable_names(self, monkeypatch):
        monkeypatch.setenv("NEXT_PUBLIC_SUPABASE_URL", "https://web.supabase.co")
        monkeypatch.setenv("NEXT_PUBLIC_SUPABASE_ANON_KEY", "web-anon")
        monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "web-service")

        assert supabase_client.get_supabase_settings() == ("https://web.supabase.co", "web-anon")
        assert supabase_client.get_supabase_settings(admin=True) == ("https://web.supabase.co", "web-service")

    def test_primary_names_win(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "https://primary.supabase.co")
        monkeypatch.setenv("NEXT_PUBLIC_SUPABASE_URL", "https://web.supabase.co")
        monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")

        assert supabase_client.get_supabase_settings()[0] == "https://primary.supabase.co"


class TestClients:
    """Test client roles and caching"""

    def test_anon_and_admin_use_their_keys(self, monkeypatch, created):
        monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
        monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")
        monkeypatch.setenv("SUPABASE_SERVICE_KEY", "service")

        supabase_client.get_client()
        supabase_client.get_admin_client()
        supabase_client.get_client()

        assert created == [("https://example.supabase.co", "anon"), ("https://example.supabase.co", "service")]

    def test_read_only_store_never_needs_service_key(self, monkeypatch, created):
        monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
        monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")

        store = ProfileStore(use_admin=False)

        assert store.client is not None
        assert created == [("https://example.supabase.co", "anon")]
