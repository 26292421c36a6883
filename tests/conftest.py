"""Pytest fixtures and configuration for Lead Dialer tests."""

import os
import pytest
from datetime import datetime, timezone
from typing import Dict, Any, Generator, Callable
from unittest.mock import AsyncMock, MagicMock, patch

from fastapi.testclient import TestClient

# Set test environment variables before importing app
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-key")
os.environ.setdefault("TWILIO_ACCOUNT_SID", "ACtest")
os.environ.setdefault("TWILIO_AUTH_TOKEN", "token_test")
os.environ.setdefault("TWILIO_PHONE_NUMBER", "+15005550006")
os.environ.setdefault("PUBLIC_BASE_URL", "https://dialer.test")
os.environ.setdefault("MAX_CALL_ATTEMPTS", "2")
os.environ.setdefault("DEBUG", "true")


DB_METHODS = [
    "create_lead",
    "insert_leads",
    "get_lead",
    "get_lead_by_phone",
    "list_leads",
    "count_leads",
    "update_lead",
    "update_lead_status",
    "delete_lead",
    "delete_all_leads",
    "create_call_attempt",
    "get_call_attempts",
    "update_latest_call_attempt",
    "health_check",
]


# ===========================================
# Sample Data Fixtures
# ===========================================

@pytest.fixture
def lead_factory() -> Callable[..., Dict[str, Any]]:
    """Build lead rows as Supabase returns them."""
    def build(**overrides) -> Dict[str, Any]:
        row = {
            "id": "lead_test_1",
            "phone": "+923001234567",
            "name": "Ahmed Khan",
            "source": "new",
            "role": None,
            "area": "DHA Lahore",
            "budget": "1.2 - 1.5 Crore PKR",
            "status": "pending",
            "result": None,
            "call_attempts": 0,
            "last_call_at": None,
            "created_at": datetime.now(timezone.utc).isoformat(),
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        row.update(overrides)
        return row
    return build


@pytest.fixture
def sample_status_callback() -> Dict[str, str]:
    """Form fields Twilio posts to the status callback."""
    return {
        "CallSid": "CA_test_12345",
        "AccountSid": "ACtest",
        "CallStatus": "no-answer",
        "To": "+923001234567",
        "From": "+15005550006",
        "Direction": "outbound-api",
    }


# ===========================================
# Mock Fixtures
# ===========================================

@pytest.fixture
def mock_db():
    """Mock the Supabase-backed database service used by the lead service."""
    with patch("src.services.lead_service.db_service") as mock:
        for name in DB_METHODS:
            setattr(mock, name, AsyncMock())
        mock.update_latest_call_attempt.return_value = True
        yield mock


@pytest.fixture
def mock_twilio():
    """Mock Twilio service used by the lead service."""
    with patch("src.services.lead_service.twilio_service") as mock:
        mock.is_configured.return_value = True
        mock.create_call = AsyncMock(return_value="CA_test_12345")
        yield mock


@pytest.fixture
def mock_httpx():
    """Mock httpx client used by the Twilio integration."""
    with patch("src.integrations.twilio.httpx.AsyncClient") as mock:
        response = MagicMock()
        response.status_code = 201
        response.json.return_value = {"sid": "CA_test_12345", "status": "queued"}

        mock_instance = AsyncMock()
        mock_instance.post.return_value = response
        mock.return_value.__aenter__.return_value = mock_instance
        mock.return_value.__aexit__.return_value = None
        yield mock_instance


# ===========================================
# Client Fixtures
# ===========================================

@pytest.fixture
def client(mock_db, mock_twilio) -> Generator[TestClient, None, None]:
    """Test client with storage and telephony mocked."""
    from src.main import app
    with patch("src.main.db_service") as main_db:
        main_db.health_check = AsyncMock(return_value=True)
        with TestClient(app) as test_client:
            yield test_client


# ===========================================
# Pytest Configuration
# ===========================================

def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
