"""Lead API Routes - CRUD and transition lookups."""

import logging
from typing import Dict, Any, Optional
from fastapi import APIRouter, Query

from src.models import (
    LeadCreate,
    LeadFilters,
    LeadResult,
    LeadRole,
    LeadSource,
    LeadStatus,
    LeadUpdate,
)
from src.services.lead_service import lead_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/leads", tags=["leads"])


@router.get("", summary="List Leads")
async def list_leads(
    status: Optional[LeadStatus] = None,
    result: Optional[LeadResult] = None,
    role: Optional[LeadRole] = None,
    source: Optional[LeadSource] = None,
    limit: int = Query(50, ge=1, le=500),
    page: int = Query(1, ge=1)
) -> Dict[str, Any]:
    """List leads, newest first, with optional filters and pagination."""
    filters = LeadFilters(status=status, result=result, role=role, source=source)
    lead_page = await lead_service.list_leads(filters, page=page, limit=limit)

    return {
        "success": True,
        "data": [lead.model_dump(mode="json") for lead in lead_page.leads],
        "pagination": lead_page.pagination.model_dump(),
    }


@router.post("", status_code=201, summary="Create Lead")
async def create_lead(body: LeadCreate) -> Dict[str, Any]:
    """Create a new lead in pending status."""
    lead = await lead_service.create_lead(body)
    return {"success": True, "data": lead.model_dump(mode="json")}


@router.get("/{lead_id}", summary="Get Lead")
async def get_lead(lead_id: str) -> Dict[str, Any]:
    lead = await lead_service.get_lead(lead_id)
    return {"success": True, "data": lead.model_dump(mode="json")}


@router.put("/{lead_id}", summary="Update Lead")
async def update_lead(lead_id: str, body: LeadUpdate) -> Dict[str, Any]:
    """
    Update a lead.

    A status change must be a legal transition from the lead's current
    status; otherwise the request fails with 400 and nothing is written.
    """
    lead = await lead_service.update_lead(lead_id, body)
    return {"success": True, "data": lead.model_dump(mode="json")}


@router.delete("/{lead_id}", summary="Delete Lead")
async def delete_lead(lead_id: str) -> Dict[str, Any]:
    await lead_service.delete_lead(lead_id)
    return {"success": True, "message": "Lead deleted successfully"}


@router.get("/{lead_id}/transitions", summary="Get Valid Transitions")
async def get_lead_transitions(lead_id: str) -> Dict[str, Any]:
    """Statuses the lead may move to next."""
    transitions = await lead_service.get_transitions(lead_id)
    return {"success": True, "data": transitions.model_dump(mode="json")}
