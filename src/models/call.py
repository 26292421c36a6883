"""Call-related models - Call attempts, call actions and Twilio callbacks."""

from datetime import datetime
from typing import Optional, Any, Dict
from pydantic import BaseModel, Field, field_validator

from src.models.enums import ANSWERED_CALL_STATUSES, CallAttemptStatus, FAILED_CALL_STATUSES
from src.models.lead import LeadRecord


class CallActionRequest(BaseModel):
    """Body of the /api/calls/* endpoints."""
    lead_id: str = Field(..., alias="leadId", min_length=1, description="Lead to act on")

    model_config = {"populate_by_name": True}


class CallAttemptRecord(BaseModel):
    """Database record for a single call placed to a lead."""
    id: Optional[str] = None
    lead_id: str
    attempt_number: int = Field(..., ge=1)
    status: str = Field(CallAttemptStatus.INITIATED.value, description="Attempt outcome or raw Twilio call status")
    call_sid: Optional[str] = Field(None, description="Twilio call SID")
    note: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"extra": "ignore"}

    @field_validator("id", "lead_id", mode="before")
    @classmethod
    def ids_to_str(cls, value: Any) -> Optional[str]:
        return str(value) if value is not None else None


class ManualDialInstructions(BaseModel):
    phone_number: str
    instruction: str
    script: str
    lead_id: str


class CallStartResult(BaseModel):
    """Outcome of starting a call, automated or manual."""
    lead: LeadRecord
    call_sid: Optional[str] = None
    manual_dialing: Optional[ManualDialInstructions] = None


class TwilioStatusCallback(BaseModel):
    """Form-encoded status callback posted by Twilio."""
    call_sid: str = Field("", alias="CallSid")
    call_status: str = Field("", alias="CallStatus")
    to: str = Field("", alias="To")
    from_number: Optional[str] = Field(None, alias="From")

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @classmethod
    def from_form(cls, form: Dict[str, Any]) -> "TwilioStatusCallback":
        return cls(**{key: str(value) for key, value in form.items()})

    def is_answered(self) -> bool:
        return self.call_status in {status.value for status in ANSWERED_CALL_STATUSES}

    def is_failed(self) -> bool:
        return self.call_status in {status.value for status in FAILED_CALL_STATUSES}

    def attempt_status(self) -> str:
        """Status to record on the latest call attempt."""
        if self.is_answered():
            return CallAttemptStatus.ANSWERED.value
        if self.is_failed():
            return CallAttemptStatus.NO_ANSWER.value
        return self.call_status
