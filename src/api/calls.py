"""Call API Routes - Start calls and record their outcome."""

import logging
from typing import Dict, Any
from fastapi import APIRouter

from src.models import CallActionRequest, LeadStatus
from src.services.lead_service import lead_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/calls", tags=["calls"])


@router.post("/start", summary="Start Twilio Call")
async def start_call(body: CallActionRequest) -> Dict[str, Any]:
    """Move the lead to calling and place an outbound call through Twilio."""
    result = await lead_service.start_call(body.lead_id)
    return {
        "success": True,
        "data": result.lead.model_dump(mode="json"),
        "message": "Call initiated successfully",
        "callSid": result.call_sid,
    }


@router.post("/manual-start", summary="Start Manual Call")
async def manual_start_call(body: CallActionRequest) -> Dict[str, Any]:
    """Move the lead to calling and return instructions for dialing by hand."""
    result = await lead_service.manual_start_call(body.lead_id)
    return {
        "success": True,
        "data": result.lead.model_dump(mode="json"),
        "message": "Ready for manual dial",
        "manualDialing": result.manual_dialing.model_dump() if result.manual_dialing else None,
    }


@router.post("/answered", summary="Mark Call Answered")
async def mark_answered(body: CallActionRequest) -> Dict[str, Any]:
    lead = await lead_service.mark_answered(body.lead_id)
    return {
        "success": True,
        "data": lead.model_dump(mode="json"),
        "message": "Call marked as answered",
    }


@router.post("/no-answer", summary="Mark Call Unanswered")
async def mark_no_answer(body: CallActionRequest) -> Dict[str, Any]:
    """Record an unanswered call: retry from pending, or drop after too many attempts."""
    lead = await lead_service.mark_no_answer(body.lead_id)

    if lead.status == LeadStatus.DROPPED:
        message = f"Lead dropped after {lead.call_attempts} failed attempts"
    else:
        message = "Call marked as no answer, lead returned to pending"

    return {"success": True, "data": lead.model_dump(mode="json"), "message": message}
