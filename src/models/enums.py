"""Enumeration types for the lead dialer."""

from enum import Enum


class LeadStatus(str, Enum):
    """Position of a lead in the calling pipeline."""
    PENDING = "pending"
    CALLING = "calling"
    ANSWERED = "answered"
    QUALIFIED = "qualified"
    DROPPED = "dropped"


class LeadSource(str, Enum):
    NEW = "new"
    OLD = "old"


class LeadRole(str, Enum):
    """Classification assigned after a conversation."""
    BUYER = "buyer"
    SELLER = "seller"
    RENTER = "renter"


class LeadResult(str, Enum):
    """Lead temperature after qualification."""
    HOT = "hot"
    WARM = "warm"
    COLD = "cold"


class CallAttemptStatus(str, Enum):
    INITIATED = "initiated"
    ANSWERED = "answered"
    NO_ANSWER = "no_answer"
    FAILED = "failed"


class TwilioCallStatus(str, Enum):
    """CallStatus values Twilio posts to the status callback."""
    QUEUED = "queued"
    INITIATED = "initiated"
    RINGING = "ringing"
    ANSWERED = "answered"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    NO_ANSWER = "no-answer"
    FAILED = "failed"
    BUSY = "busy"
    CANCELED = "canceled"


# Twilio reports an answered call as in-progress
ANSWERED_CALL_STATUSES = frozenset({
    TwilioCallStatus.ANSWERED,
    TwilioCallStatus.IN_PROGRESS,
})

# Outcomes that count as an unanswered attempt
FAILED_CALL_STATUSES = frozenset({
    TwilioCallStatus.NO_ANSWER,
    TwilioCallStatus.FAILED,
    TwilioCallStatus.BUSY,
    TwilioCallStatus.CANCELED,
})
