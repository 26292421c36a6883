"""Supabase database service for the lead dialer."""

import logging
from typing import Optional, Dict, Any, List, Tuple
from datetime import datetime, timezone
from supabase import create_client, Client
from supabase.lib.client_options import ClientOptions

from src.core.config import get_settings
from src.core.exceptions import DatabaseError, DuplicateLeadError
from src.models import (
    LeadRecord,
    LeadStatus,
    CallAttemptRecord,
    CallAttemptStatus,
)

logger = logging.getLogger(__name__)

# Postgres SQLSTATE for a unique constraint violation
UNIQUE_VIOLATION = "23505"


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class DatabaseService:
    """
    Service for Supabase database operations.

    Handles CRUD for the leads and call_attempts tables. Status changes go
    through update_lead_status, which only writes when the stored status
    still matches the one the caller read.

    Uses the sync Supabase client behind an async interface for
    consistency with the rest of the application.
    """

    def __init__(self):
        """Initialize Supabase client."""
        self._client: Optional[Client] = None

    @property
    def client(self) -> Client:
        """Lazy initialization of Supabase client."""
        if self._client is None:
            settings = get_settings()
            if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
                raise DatabaseError("Supabase credentials not configured")

            self._client = create_client(
                settings.SUPABASE_URL,
                settings.SUPABASE_KEY,
                options=ClientOptions(
                    postgrest_client_timeout=30,
                    storage_client_timeout=30
                )
            )
            logger.info("Supabase client initialized")
        return self._client

    @property
    def leads_table(self) -> str:
        return get_settings().LEADS_TABLE

    @property
    def attempts_table(self) -> str:
        return get_settings().CALL_ATTEMPTS_TABLE

    # ===========================================
    # Lead Create Operations
    # ===========================================

    async def create_lead(self, data: Dict[str, Any]) -> LeadRecord:
        """Insert a new lead and return the stored record."""
        now = utcnow_iso()
        row = {**data, "created_at": now, "updated_at": now}

        try:
            response = self.client.table(self.leads_table).insert(row).execute()
        except Exception as e:
            if getattr(e, "code", None) == UNIQUE_VIOLATION:
                logger.warning(f"Lead with phone {row.get('phone')} was inserted concurrently")
                raise DuplicateLeadError(row.get("phone")) from e
            logger.error(f"Failed to create lead: {e}")
            raise DatabaseError(f"Failed to create lead: {e}") from e

        if not response.data:
            logger.error("Insert returned no data")
            raise DatabaseError("Failed to create lead")

        lead = LeadRecord(**response.data[0])
        logger.info(f"Created lead: {lead.id}")
        return lead

    async def insert_leads(self, rows: List[Dict[str, Any]]) -> List[LeadRecord]:
        """Bulk insert, used for sample data."""
        now = utcnow_iso()
        payload = [{**row, "created_at": now, "updated_at": now} for row in rows]

        try:
            response = self.client.table(self.leads_table).insert(payload).execute()
        except Exception as e:
            logger.error(f"Failed to insert {len(rows)} leads: {e}")
            raise DatabaseError(f"Failed to insert leads: {e}") from e

        return [LeadRecord(**record) for record in (response.data or [])]

    # ===========================================
    # Lead Read Operations
    # ===========================================

    async def get_lead(self, lead_id: str) -> Optional[LeadRecord]:
        """Fetch lead by ID."""
        return await self._get_one("id", lead_id)

    async def get_lead_by_phone(self, phone: str) -> Optional[LeadRecord]:
        """Fetch lead by its (unique) phone number."""
        return await self._get_one("phone", phone)

    async def _get_one(self, column: str, value: str) -> Optional[LeadRecord]:
        try:
            response = (
                self.client.table(self.leads_table)
                .select("*")
                .eq(column, value)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to get lead by {column}={value}: {e}")
            raise DatabaseError(f"Failed to fetch lead: {e}") from e

        if response.data:
            return LeadRecord(**response.data[0])

        logger.debug(f"Lead not found for {column}={value}")
        return None

    async def list_leads(
        self,
        filters: Optional[Dict[str, str]] = None,
        page: int = 1,
        limit: int = 50
    ) -> Tuple[List[LeadRecord], int]:
        """Fetch a page of leads, newest first, with the total match count."""
        start = (page - 1) * limit

        try:
            query = self.client.table(self.leads_table).select("*", count="exact")
            for column, value in (filters or {}).items():
                query = query.eq(column, value)

            response = (
                query
                .order("created_at", desc=True)
                .range(start, start + limit - 1)
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to list leads with {filters}: {e}")
            raise DatabaseError(f"Failed to list leads: {e}") from e

        leads = [LeadRecord(**record) for record in (response.data or [])]
        total = response.count if response.count is not None else len(leads)
        return leads, total

    async def count_leads(self) -> int:
        try:
            response = (
                self.client.table(self.leads_table)
                .select("id", count="exact")
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to count leads: {e}")
            raise DatabaseError(f"Failed to count leads: {e}") from e

        return response.count or 0

    # ===========================================
    # Lead Update Operations
    # ===========================================

    async def update_lead(self, lead_id: str, updates: Dict[str, Any]) -> Optional[LeadRecord]:
        """Update non-status lead fields. Returns None if the lead is gone."""
        updates = {**updates, "updated_at": utcnow_iso()}

        try:
            response = (
                self.client.table(self.leads_table)
                .update(updates)
                .eq("id", lead_id)
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to update lead {lead_id}: {e}")
            raise DatabaseError(f"Failed to update lead: {e}") from e

        if response.data:
            logger.info(f"Updated lead {lead_id}: {list(updates.keys())}")
            return LeadRecord(**response.data[0])

        logger.warning(f"Update returned no data for {lead_id}")
        return None

    async def update_lead_status(
        self,
        lead_id: str,
        expected_status: LeadStatus,
        new_status: LeadStatus,
        extra_updates: Optional[Dict[str, Any]] = None
    ) -> Optional[LeadRecord]:
        """
        Conditionally move a lead to ``new_status``.

        The row is only written while its status is still
        ``expected_status``. Returns None when no row matched, meaning the
        lead was deleted or another request changed its status first.
        """
        updates: Dict[str, Any] = {
            **(extra_updates or {}),
            "status": new_status.value,
            "updated_at": utcnow_iso(),
        }

        try:
            response = (
                self.client.table(self.leads_table)
                .update(updates)
                .eq("id", lead_id)
                .eq("status", expected_status.value)
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to update status of lead {lead_id}: {e}")
            raise DatabaseError(f"Failed to update lead status: {e}") from e

        if response.data:
            return LeadRecord(**response.data[0])

        logger.warning(
            f"Conditional status write matched no row: lead={lead_id} "
            f"expected={expected_status.value} new={new_status.value}"
        )
        return None

    # ===========================================
    # Lead Delete Operations
    # ===========================================

    async def delete_lead(self, lead_id: str) -> bool:
        """Delete a lead. Returns False if nothing was deleted."""
        try:
            response = (
                self.client.table(self.leads_table)
                .delete()
                .eq("id", lead_id)
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to delete lead {lead_id}: {e}")
            raise DatabaseError(f"Failed to delete lead: {e}") from e

        deleted = bool(response.data)
        if deleted:
            logger.info(f"Deleted lead {lead_id}")
        return deleted

    async def delete_all_leads(self) -> int:
        """Delete every lead. Returns the number of rows removed."""
        try:
            # PostgREST refuses unfiltered deletes
            response = (
                self.client.table(self.leads_table)
                .delete()
                .not_.is_("id", "null")
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to delete all leads: {e}")
            raise DatabaseError(f"Failed to clear leads: {e}") from e

        deleted = len(response.data or [])
        logger.info(f"Deleted {deleted} leads")
        return deleted

    # ===========================================
    # Call Attempt Operations
    # ===========================================

    async def create_call_attempt(
        self,
        lead_id: str,
        attempt_number: int,
        call_sid: Optional[str] = None
    ) -> Optional[CallAttemptRecord]:
        """Log a call attempt in 'initiated' state."""
        now = utcnow_iso()
        row: Dict[str, Any] = {
            "lead_id": lead_id,
            "attempt_number": attempt_number,
            "status": CallAttemptStatus.INITIATED.value,
            "created_at": now,
            "updated_at": now,
        }
        if call_sid:
            row["call_sid"] = call_sid

        try:
            response = self.client.table(self.attempts_table).insert(row).execute()
        except Exception as e:
            logger.error(f"Failed to log call attempt for lead {lead_id}: {e}")
            raise DatabaseError(f"Failed to log call attempt: {e}") from e

        if response.data:
            return CallAttemptRecord(**response.data[0])
        return None

    async def get_call_attempts(self, lead_id: str) -> List[CallAttemptRecord]:
        """All call attempts for a lead, newest first."""
        try:
            response = (
                self.client.table(self.attempts_table)
                .select("*")
                .eq("lead_id", lead_id)
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to get call attempts for lead {lead_id}: {e}")
            raise DatabaseError(f"Failed to fetch call attempts: {e}") from e

        return [CallAttemptRecord(**record) for record in (response.data or [])]

    async def update_latest_call_attempt(
        self,
        lead_id: str,
        status: str,
        call_sid: Optional[str] = None
    ) -> bool:
        """Set the status of the most recent call attempt for a lead."""
        attempts = await self.get_call_attempts(lead_id)
        if not attempts:
            logger.warning(f"No call attempt to update for lead {lead_id}")
            return False

        updates: Dict[str, Any] = {"status": status, "updated_at": utcnow_iso()}
        if call_sid:
            updates["call_sid"] = call_sid

        try:
            response = (
                self.client.table(self.attempts_table)
                .update(updates)
                .eq("id", attempts[0].id)
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to update call attempt {attempts[0].id}: {e}")
            raise DatabaseError(f"Failed to update call attempt: {e}") from e

        return bool(response.data)

    # ===========================================
    # Health Check
    # ===========================================

    async def health_check(self) -> bool:
        """Check database connectivity."""
        try:
            self.client.table(self.leads_table).select("id").limit(1).execute()
            return True
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False


# Singleton instance
db_service = DatabaseService()
