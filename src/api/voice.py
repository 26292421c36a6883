"""Voice API Routes - TwiML and Twilio status callbacks."""

import logging
from typing import Dict, Any
from fastapi import APIRouter, Request, Response

from src.integrations.twilio import twilio_service
from src.models import TwilioStatusCallback
from src.services.lead_service import lead_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/voice", tags=["voice"])


@router.post("", summary="TwiML Greeting")
async def voice() -> Response:
    """TwiML fetched by Twilio once an outbound call connects."""
    return Response(
        content=twilio_service.build_voice_response(),
        media_type="text/xml"
    )


@router.post("/status", summary="Twilio Status Callback")
async def voice_status(request: Request) -> Dict[str, Any]:
    """
    Handle Twilio call status callbacks.

    Always answers 200 so Twilio does not retry; failures are logged.
    """
    try:
        form = await request.form()
        callback = TwilioStatusCallback.from_form(dict(form))
        result = await lead_service.handle_status_callback(callback)

        return {
            "ok": True,
            "leadStatus": result["lead_status"],
            "callStatus": result["call_status"],
        }

    except Exception as e:
        logger.error(f"Error processing Twilio status callback: {e}", exc_info=True)
        return {"ok": True, "error": "Internal error"}
