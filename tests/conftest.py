"""
Pytest configuration and shared fixtures.
"""

from unittest.mock import MagicMock, patch

import pytest

from helpers import FakeRepository, weekly_row


@pytest.fixture(autouse=True)
def mock_settings(monkeypatch):
    """Pin settings for all tests."""
    from config import settings

    monkeypatch.setattr(settings, "supabase_url", "https://test.supabase.co")
    monkeypatch.setattr(settings, "supabase_key", "test_key")
    monkeypatch.setattr(settings, "timezone", "America/New_York")
    monkeypatch.setattr(settings, "environment", "test")
    monkeypatch.setattr(settings, "admin_emails", "")
    monkeypatch.setattr(settings, "booking_window_days", 31)
    yield settings


@pytest.fixture
def mock_supabase_client():
    """Create a mock Supabase client."""
    mock_client = MagicMock()
    mock_table = MagicMock()
    mock_client.table.return_value = mock_table
    return mock_client, mock_table


@pytest.fixture
def supabase_client(mock_supabase_client):
    """Create SupabaseClient with mocked client."""
    from db.supabase_client import SupabaseClient

    mock_client, _ = mock_supabase_client
    with patch("db.supabase_client.create_client", return_value=mock_client):
        client = SupabaseClient(tz_name="America/New_York")
        client.client = mock_client
        return client


@pytest.fixture
def tuesday_repository():
    """Barber 1 works Tuesdays 09:00-18:00 and nothing else."""
    return FakeRepository(weekly=[weekly_row(2)])
