"""Twilio integration for outbound calling."""

import logging
from typing import Optional, Iterable, Dict, Any
from xml.sax.saxutils import escape
import httpx

from src.core.config import get_settings, normalize_phone_number

logger = logging.getLogger(__name__)


DEFAULT_STATUS_CALLBACK_EVENTS = ("answered", "completed", "no-answer", "failed")


class TwilioService:
    """
    Service for Twilio Voice API operations.

    Places outbound calls whose status changes are posted back to the
    /api/voice/status webhook, and renders the TwiML greeting served
    from /api/voice.
    """

    def __init__(self):
        """Initialize service with settings."""
        self._settings = None

    @property
    def settings(self):
        """Lazy load settings."""
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    def is_configured(self) -> bool:
        return bool(
            self.settings.TWILIO_ACCOUNT_SID
            and self.settings.TWILIO_AUTH_TOKEN
            and self.settings.TWILIO_PHONE_NUMBER
        )

    @property
    def calls_url(self) -> str:
        return (
            f"{self.settings.TWILIO_API_URL}/Accounts/"
            f"{self.settings.TWILIO_ACCOUNT_SID}/Calls.json"
        )

    async def create_call(
        self,
        to_number: str,
        voice_url: str,
        status_callback_url: str,
        events: Iterable[str] = DEFAULT_STATUS_CALLBACK_EVENTS
    ) -> Optional[str]:
        """
        Create an outbound call via the Twilio REST API.

        Args:
            to_number: Phone number to call (formatted to E.164)
            voice_url: URL Twilio fetches TwiML from once the call connects
            status_callback_url: URL Twilio posts call status changes to
            events: Status callback events to subscribe to

        Returns:
            Call SID if successful, None otherwise
        """
        formatted_number = normalize_phone_number(to_number)
        if not formatted_number:
            logger.error(f"Invalid phone number: {to_number}")
            return None

        # List values are sent as one StatusCallbackEvent field per event
        form: Dict[str, Any] = {
            "To": formatted_number,
            "From": self.settings.TWILIO_PHONE_NUMBER,
            "Url": voice_url,
            "StatusCallback": status_callback_url,
            "StatusCallbackMethod": "POST",
            "StatusCallbackEvent": list(events),
        }

        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                response = await client.post(
                    self.calls_url,
                    data=form,
                    auth=(self.settings.TWILIO_ACCOUNT_SID, self.settings.TWILIO_AUTH_TOKEN)
                )

                if response.status_code == 201:
                    call_sid = response.json().get("sid")
                    logger.info(f"Twilio call created: {call_sid} -> {formatted_number}")
                    return call_sid
                else:
                    logger.error(
                        f"Twilio API error: {response.status_code} - {response.text}"
                    )
                    return None

        except httpx.TimeoutException:
            logger.error("Twilio API timeout")
            return None
        except httpx.HTTPError as e:
            logger.error(f"Twilio API error: {e}")
            return None

    def build_voice_response(self, script: Optional[str] = None) -> str:
        """TwiML that reads the call script and hangs up."""
        text = escape(script or self.settings.CALL_SCRIPT)
        return (
            '<?xml version="1.0" encoding="UTF-8"?>'
            "<Response>"
            f'<Say voice="alice">{text}</Say>'
            "<Hangup/>"
            "</Response>"
        )


# Singleton instance
twilio_service = TwilioService()
