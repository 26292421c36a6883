"""Exception hierarchy for the lead dialer service."""

from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from src.models.enums import LeadStatus


class LeadDialerError(Exception):
    """Base error. Subclasses set the HTTP status they map to."""
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class LeadStateTransitionError(LeadDialerError):
    """A proposed status change is not in the transition table."""
    status_code = 400

    def __init__(
        self,
        from_status: "LeadStatus",
        to_status: "LeadStatus",
        allowed: Optional[List["LeadStatus"]] = None
    ):
        if allowed is None:
            from src.core.state_machine import get_valid_transitions
            allowed = get_valid_transitions(from_status)

        self.from_status = from_status
        self.to_status = to_status
        self.allowed = list(allowed)

        allowed_text = ", ".join(status.value for status in self.allowed)
        super().__init__(
            f'Invalid transition from "{from_status.value}" to "{to_status.value}". '
            f"Allowed transitions: [{allowed_text}]"
        )


class LeadNotFoundError(LeadDialerError):
    status_code = 404

    def __init__(self, lead_id: str):
        super().__init__(f"Lead not found: {lead_id}")
        self.lead_id = lead_id


class DuplicateLeadError(LeadDialerError):
    status_code = 400

    def __init__(self, phone: str):
        super().__init__(f"Lead with phone number {phone} already exists")
        self.phone = phone


class LeadConflictError(LeadDialerError):
    """The lead's status changed between read and conditional write."""
    status_code = 409

    def __init__(self, lead_id: str, expected: "LeadStatus", actual: Optional["LeadStatus"]):
        actual_text = actual.value if actual else "unknown"
        super().__init__(
            f"Lead {lead_id} was modified concurrently: "
            f'expected status "{expected.value}", found "{actual_text}"'
        )
        self.lead_id = lead_id
        self.expected = expected
        self.actual = actual


class DatabaseError(LeadDialerError):
    status_code = 500


class TelephonyNotConfiguredError(LeadDialerError):
    status_code = 500

    def __init__(self):
        super().__init__(
            "Twilio credentials not configured. Set TWILIO_ACCOUNT_SID, "
            "TWILIO_AUTH_TOKEN and TWILIO_PHONE_NUMBER"
        )


class TelephonyError(LeadDialerError):
    status_code = 502
