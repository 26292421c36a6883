"""Lead Service - Lead CRUD and call lifecycle on top of the status state machine."""

import logging
from datetime import datetime, timezone
from typing import Dict, Any, Optional

from src.core.config import get_settings, normalize_phone_number
from src.core.database import db_service
from src.core.exceptions import (
    DatabaseError,
    DuplicateLeadError,
    LeadConflictError,
    LeadNotFoundError,
    LeadStateTransitionError,
    TelephonyError,
    TelephonyNotConfiguredError,
)
from src.core.state_machine import (
    ensure_transition,
    get_valid_transitions,
    is_terminal_state,
    next_status_after_failed_call,
)
from src.integrations.twilio import twilio_service
from src.models import (
    CallAttemptStatus,
    CallStartResult,
    LeadCreate,
    LeadFilters,
    LeadPage,
    LeadRecord,
    LeadSource,
    LeadStatus,
    LeadTransitions,
    LeadUpdate,
    ManualDialInstructions,
    Pagination,
    TwilioStatusCallback,
)

logger = logging.getLogger(__name__)


SAMPLE_LEADS = [
    {
        "phone": "+92-300-1234567",
        "name": "Ahmed Khan",
        "source": LeadSource.NEW,
        "area": "DHA Lahore",
        "budget": "1.2 - 1.5 Crore PKR",
    },
    {
        "phone": "+92-321-9876543",
        "name": "Fatima Sheikh",
        "source": LeadSource.OLD,
        "area": "Gulshan Iqbal, Karachi",
        "budget": "80 Lac - 1 Crore PKR",
    },
    {
        "phone": "+92-333-5555444",
        "name": "Ali Hassan",
        "source": LeadSource.NEW,
        "area": "F-7, Islamabad",
        "budget": "50,000 - 80,000 PKR/month",
    },
    {
        "phone": "+92-345-6789012",
        "name": "Sana Malik",
        "source": LeadSource.NEW,
        "area": "Cantt Area, Rawalpindi",
    },
    {
        "phone": "+92-312-8888777",
        "name": "Muhammad Usman",
        "source": LeadSource.OLD,
        "area": "Johar Town, Lahore",
    },
]


class LeadService:
    """
    Orchestrates every lead mutation.

    Each status change follows the same sequence:
    1. Read the lead's current status
    2. Validate (current -> desired) against the transition table
    3. Write conditionally on the status read in step 1

    A rejected transition raises LeadStateTransitionError; a write that
    lost a race with another request raises LeadConflictError.
    """

    def __init__(self):
        """Initialize service with lazy-loaded settings."""
        self._settings = None

    @property
    def settings(self):
        """Lazy load settings."""
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    # ===========================================
    # CRUD
    # ===========================================

    async def create_lead(self, data: LeadCreate) -> LeadRecord:
        """Create a pending lead. Phone numbers must be unique."""
        phone = normalize_phone_number(data.phone) or data.phone

        if await db_service.get_lead_by_phone(phone):
            raise DuplicateLeadError(phone)

        row = data.model_dump(mode="json")
        row.update({
            "phone": phone,
            "status": LeadStatus.PENDING.value,
            "call_attempts": 0,
        })

        lead = await db_service.create_lead(row)
        logger.info(f"Created lead {lead.id} ({lead.phone})")
        return lead

    async def get_lead(self, lead_id: str) -> LeadRecord:
        lead = await db_service.get_lead(lead_id)
        if not lead:
            raise LeadNotFoundError(lead_id)
        return lead

    async def list_leads(
        self,
        filters: Optional[LeadFilters] = None,
        page: int = 1,
        limit: int = 50
    ) -> LeadPage:
        query = filters.as_query() if filters else {}
        leads, total = await db_service.list_leads(query, page=page, limit=limit)
        return LeadPage(leads=leads, pagination=Pagination.build(page, limit, total))

    async def update_lead(self, lead_id: str, changes: LeadUpdate) -> LeadRecord:
        """
        Apply a manual edit.

        A status change is validated and written conditionally together
        with the other fields; edits without a status change are plain
        updates.
        """
        current = await self.get_lead(lead_id)
        updates = changes.model_dump(mode="json", exclude_unset=True)

        if "phone" in updates:
            updates["phone"] = normalize_phone_number(updates["phone"]) or updates["phone"]
            if updates["phone"] != current.phone:
                existing = await db_service.get_lead_by_phone(updates["phone"])
                if existing and existing.id != current.id:
                    raise DuplicateLeadError(updates["phone"])

        new_status = changes.status
        updates.pop("status", None)

        if new_status is not None and new_status != current.status:
            return await self._transition(current, new_status, updates)

        if not updates:
            return current

        lead = await db_service.update_lead(lead_id, updates)
        if not lead:
            raise LeadNotFoundError(lead_id)
        return lead

    async def delete_lead(self, lead_id: str) -> None:
        if not await db_service.delete_lead(lead_id):
            raise LeadNotFoundError(lead_id)
        logger.info(f"Deleted lead {lead_id}")

    async def get_transitions(self, lead_id: str) -> LeadTransitions:
        """Legal next statuses for a lead."""
        lead = await self.get_lead(lead_id)
        return LeadTransitions(
            lead_id=lead_id,
            status=lead.status,
            valid_transitions=get_valid_transitions(lead.status),
            is_terminal=is_terminal_state(lead.status),
        )

    # ===========================================
    # Call Lifecycle
    # ===========================================

    async def start_call(self, lead_id: str) -> CallStartResult:
        """Move a lead to calling and place the call through Twilio."""
        if not twilio_service.is_configured():
            raise TelephonyNotConfiguredError()

        lead = await self._begin_call(lead_id)

        base_url = self.settings.PUBLIC_BASE_URL.rstrip("/")
        call_sid = await twilio_service.create_call(
            to_number=lead.phone,
            voice_url=f"{base_url}/api/voice",
            status_callback_url=f"{base_url}/api/voice/status",
        )

        if not call_sid:
            # Lead stays in calling; a status callback or no-answer resolves it
            await db_service.update_latest_call_attempt(lead.id, CallAttemptStatus.FAILED.value)
            raise TelephonyError(f"Twilio did not accept the call to {lead.phone}")

        await db_service.update_latest_call_attempt(
            lead.id,
            CallAttemptStatus.INITIATED.value,
            call_sid=call_sid
        )
        return CallStartResult(lead=lead, call_sid=call_sid)

    async def manual_start_call(self, lead_id: str) -> CallStartResult:
        """Move a lead to calling and return instructions for dialing by hand."""
        lead = await self._begin_call(lead_id)

        instructions = ManualDialInstructions(
            phone_number=lead.phone,
            instruction=f"Call {lead.phone} from your phone ({self.settings.MANUAL_DIAL_NUMBER})",
            script=self.settings.CALL_SCRIPT,
            lead_id=lead.id,
        )
        return CallStartResult(lead=lead, manual_dialing=instructions)

    async def mark_answered(self, lead_id: str) -> LeadRecord:
        current = await self.get_lead(lead_id)
        lead = await self._transition(current, LeadStatus.ANSWERED)
        await db_service.update_latest_call_attempt(lead_id, CallAttemptStatus.ANSWERED.value)
        return lead

    async def mark_no_answer(self, lead_id: str) -> LeadRecord:
        """Record an unanswered call and apply the retry policy."""
        current = await self.get_lead(lead_id)
        target = next_status_after_failed_call(
            current.call_attempts,
            self.settings.MAX_CALL_ATTEMPTS
        )
        lead = await self._transition(current, target)
        await db_service.update_latest_call_attempt(lead_id, CallAttemptStatus.NO_ANSWER.value)
        return lead

    async def handle_status_callback(self, callback: TwilioStatusCallback) -> Dict[str, Any]:
        """
        Apply a Twilio call status callback.

        Never raises for business-rule rejections: Twilio only needs an
        acknowledgement, so a refused transition is logged and the lead
        keeps its status.
        """
        logger.info(
            f"Twilio callback: {callback.call_status} for {callback.to}, "
            f"Call SID: {callback.call_sid}"
        )

        phone = normalize_phone_number(callback.to) or callback.to
        lead = await db_service.get_lead_by_phone(phone)
        if not lead:
            logger.info(f"Lead not found for phone: {callback.to}")
            return {"ok": True, "lead_status": None, "call_status": callback.call_status}

        desired: Optional[LeadStatus] = None
        if callback.is_answered():
            desired = LeadStatus.ANSWERED
        elif callback.is_failed():
            desired = next_status_after_failed_call(
                lead.call_attempts,
                self.settings.MAX_CALL_ATTEMPTS
            )

        status = lead.status
        if desired is not None and desired != lead.status:
            try:
                status = (await self._transition(lead, desired)).status
            except (LeadStateTransitionError, LeadConflictError) as e:
                logger.warning(f"Ignoring callback for lead {lead.id}: {e}")

        await db_service.update_latest_call_attempt(lead.id, callback.attempt_status())

        return {"ok": True, "lead_status": status.value, "call_status": callback.call_status}

    # ===========================================
    # Sample Data
    # ===========================================

    async def seed_sample_leads(self) -> Dict[str, Any]:
        existing = await db_service.count_leads()
        if existing > 0:
            return {"created": False, "existing_count": existing, "leads": []}

        rows = []
        for sample in SAMPLE_LEADS:
            row = LeadCreate(**sample).model_dump(mode="json")
            row.update({
                "phone": normalize_phone_number(row["phone"]) or row["phone"],
                "status": LeadStatus.PENDING.value,
                "call_attempts": 0,
            })
            rows.append(row)

        leads = await db_service.insert_leads(rows)
        logger.info(f"Seeded {len(leads)} sample leads")
        return {"created": True, "existing_count": 0, "leads": leads}

    async def clear_leads(self) -> int:
        return await db_service.delete_all_leads()

    # ===========================================
    # Internals
    # ===========================================

    async def _begin_call(self, lead_id: str) -> LeadRecord:
        """Shared bookkeeping for automated and manual calls."""
        current = await self.get_lead(lead_id)
        attempt_number = current.call_attempts + 1

        lead = await self._transition(current, LeadStatus.CALLING, {
            "call_attempts": attempt_number,
            "last_call_at": datetime.now(timezone.utc).isoformat(),
        })
        attempt = await db_service.create_call_attempt(lead.id, attempt_number)
        if attempt is None:
            raise DatabaseError(f"Failed to log call attempt for lead {lead.id}")
        return lead

    async def _transition(
        self,
        lead: LeadRecord,
        to_status: LeadStatus,
        extra_updates: Optional[Dict[str, Any]] = None
    ) -> LeadRecord:
        """Validate and conditionally persist a status change."""
        try:
            ensure_transition(lead.status, to_status)
        except LeadStateTransitionError as e:
            logger.warning(f"Rejected transition for lead {lead.id}: {e}")
            raise

        updated = await db_service.update_lead_status(
            lead.id,
            expected_status=lead.status,
            new_status=to_status,
            extra_updates=extra_updates
        )

        if updated is None:
            latest = await db_service.get_lead(lead.id)
            if latest is None:
                raise LeadNotFoundError(lead.id)
            raise LeadConflictError(lead.id, lead.status, latest.status)

        logger.info(f"Lead {lead.id}: {lead.status.value} -> {to_status.value}")
        return updated


# Singleton instance
lead_service = LeadService()
