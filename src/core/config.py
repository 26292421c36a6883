"""Configuration management for the lead dialer."""

from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ===========================================
    # Supabase Configuration
    # ===========================================
    SUPABASE_URL: str = Field(default="", description="Supabase project URL")
    SUPABASE_KEY: str = Field(default="", description="Supabase service key")
    LEADS_TABLE: str = Field(default="leads", description="Table holding lead records")
    CALL_ATTEMPTS_TABLE: str = Field(
        default="call_attempts",
        description="Table holding one row per call placed"
    )

    # ===========================================
    # Twilio Configuration
    # ===========================================
    TWILIO_ACCOUNT_SID: str = Field(default="", description="Twilio account SID")
    TWILIO_AUTH_TOKEN: str = Field(default="", description="Twilio auth token")
    TWILIO_PHONE_NUMBER: str = Field(default="", description="Outbound caller ID")
    TWILIO_API_URL: str = Field(
        default="https://api.twilio.com/2010-04-01",
        description="Twilio REST API base URL"
    )

    # ===========================================
    # Server Configuration
    # ===========================================
    PUBLIC_BASE_URL: str = Field(
        default="http://localhost:8000",
        description="Public URL Twilio uses to reach the voice and status webhooks"
    )
    DEBUG: bool = Field(default=True, description="Debug mode")

    # ===========================================
    # Calling Policy
    # ===========================================
    MAX_CALL_ATTEMPTS: int = Field(
        default=2,
        ge=1,
        description="Unanswered calls allowed before a lead is dropped"
    )
    MANUAL_DIAL_NUMBER: str = Field(
        default="+923330220803",
        description="Operator phone shown in manual dialing instructions"
    )
    CALL_SCRIPT: str = Field(
        default=(
            "Assalam o Alaikum. Hum aap se property inquiry ke hawale se "
            "rabta kar rahe thay. Shukriya."
        ),
        description="Greeting read on automated and manual calls"
    )
    DEFAULT_COUNTRY_CODE: str = Field(
        default="92",
        description="Country code prepended to national numbers"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


def normalize_phone_number(phone: Optional[str], country_code: Optional[str] = None) -> Optional[str]:
    """
    Format a phone number in E.164 for Twilio and for duplicate checks.

    Args:
        phone: Raw phone number, e.g. "+92-300-1234567" or "0300 1234567"
        country_code: Digits to prepend to national numbers; defaults to
            the configured DEFAULT_COUNTRY_CODE

    Returns:
        "+<digits>" or None if no usable number was given
    """
    if not phone:
        return None

    raw = str(phone).strip()
    digits = "".join(c for c in raw if c.isdigit())

    if len(digits) < 7:
        return None

    if raw.startswith("+"):
        return f"+{digits}"
    if digits.startswith("00"):
        return f"+{digits[2:]}"

    if country_code is None:
        country_code = get_settings().DEFAULT_COUNTRY_CODE

    # National format with trunk prefix, e.g. 0300 1234567
    if digits.startswith("0"):
        return f"+{country_code}{digits[1:]}"
    if digits.startswith(country_code):
        return f"+{digits}"
    return f"+{country_code}{digits}"


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
