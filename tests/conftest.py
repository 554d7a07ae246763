"""
Pytest configuration and shared fixtures.
"""
import os
import sys
import pytest

# Add project root to path for imports
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from core.config import reset_settings
from core.extractors.email_extractor import EmailContentExtractor


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Isolate tests from a developer's .env / shell settings."""
    for key in ("SUPABASE_URL", "SUPABASE_KEY", "EXTRACT_SIGNATURE_TAIL_CHARS", "STORE_PAGE_SIZE"):
        monkeypatch.delenv(key, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def extractor():
    return EmailContentExtractor()


@pytest.fixture
def sample_records():
    """Rows shaped like the CRM ``messages`` table."""
    return [
        {
            "id": 1,
            "type": "email",
            "content": "<div>See you at 3pm!</div><div><br></div>",
            "created_at": "2025-10-13T09:00:00+00:00",
            "subject": "Booking confirmation",
            "direction": "received",
            "recipient_email": "client@example.com",
        },
        {
            "id": 2,
            "type": "email",
            "content": "Already clean text here.",
            "created_at": "2025-10-13T15:30:00Z",
            "subject": "Booking confirmation",
            "direction": "received",
            "recipient_email": "client@example.com",
        },
        {
            "id": 3,
            "type": "email",
            "content": "> only a quoted reply",
            "created_at": "2025-10-12T10:00:00+00:00",
            "subject": "Re: Availability",
            "direction": "received",
            "recipient_email": "other@example.com",
        },
        {
            "id": 4,
            "type": "sms",
            "content": "Running 5 mins late",
            "created_at": "2025-10-14T08:00:00+00:00",
            "direction": "received",
        },
    ]
