"""Models package - All Pydantic models organized by domain."""

from src.models.enums import (
    LeadStatus,
    LeadSource,
    LeadRole,
    LeadResult,
    CallAttemptStatus,
    TwilioCallStatus,
    ANSWERED_CALL_STATUSES,
    FAILED_CALL_STATUSES,
)
from src.models.lead import (
    LeadCreate,
    LeadUpdate,
    LeadRecord,
    LeadFilters,
    Pagination,
    LeadPage,
    LeadTransitions,
)
from src.models.call import (
    CallActionRequest,
    CallAttemptRecord,
    ManualDialInstructions,
    CallStartResult,
    TwilioStatusCallback,
)

__all__ = [
    # Enums
    "LeadStatus",
    "LeadSource",
    "LeadRole",
    "LeadResult",
    "CallAttemptStatus",
    "TwilioCallStatus",
    "ANSWERED_CALL_STATUSES",
    "FAILED_CALL_STATUSES",
    # Lead models
    "LeadCreate",
    "LeadUpdate",
    "LeadRecord",
    "LeadFilters",
    "Pagination",
    "LeadPage",
    "LeadTransitions",
    # Call models
    "CallActionRequest",
    "CallAttemptRecord",
    "ManualDialInstructions",
    "CallStartResult",
    "TwilioStatusCallback",
]
