"""
Configuration module
====================

Loads settings for the message store and the extraction tools from the
environment and the ``.env`` file.
"""

from pydantic_settings import BaseSettings
from pydantic import field_validator
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    """
    Application settings, populated from environment variables.

    Attributes:
        SUPABASE_URL: project URL of the hosted database (REST layer lives under /rest/v1)
        SUPABASE_KEY: API key sent as ``apikey`` and bearer token
        MESSAGES_TABLE: table holding email/SMS message rows
        REQUEST_TIMEOUT: HTTP timeout in seconds
        STORE_PAGE_SIZE: rows fetched per page when listing messages
        EXTRACT_SIGNATURE_TAIL_CHARS: remainder length under which a sign-off ends the message
    """
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""
    MESSAGES_TABLE: str = "messages"
    REQUEST_TIMEOUT: float = 30.0
    STORE_PAGE_SIZE: int = 1000
    EXTRACT_SIGNATURE_TAIL_CHARS: int = 52

    @field_validator("SUPABASE_KEY", "MESSAGES_TABLE")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return (v or "").strip()

    @field_validator("SUPABASE_URL")
    @classmethod
    def normalize_url(cls, v: str) -> str:
        """Strip whitespace and the trailing slash so paths join cleanly."""
        return (v or "").strip().rstrip("/")

    @field_validator("STORE_PAGE_SIZE", "EXTRACT_SIGNATURE_TAIL_CHARS")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v

    class Config:
        env_file = ".env"
        case_sensitive = False


# Cached singleton so the .env file is read once
_settings_instance = None


def get_settings() -> Settings:
    """
    Return the settings singleton, creating it on first call.
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance


def reset_settings() -> None:
    """Drop the cached settings (tests change the environment between cases)."""
    global _settings_instance
    _settings_instance = None
