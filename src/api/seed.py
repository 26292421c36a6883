"""Seed API Routes - Sample data for local testing."""

import logging
from typing import Dict, Any
from fastapi import APIRouter

from src.services.lead_service import lead_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/seed", tags=["seed"])


@router.post("", summary="Insert Sample Leads")
async def seed() -> Dict[str, Any]:
    result = await lead_service.seed_sample_leads()

    if not result["created"]:
        return {
            "success": False,
            "message": "Database already has data. Use DELETE first if you want to reseed.",
            "existingCount": result["existing_count"],
        }

    return {
        "success": True,
        "message": "Sample data created successfully",
        "count": len(result["leads"]),
        "data": [lead.model_dump(mode="json") for lead in result["leads"]],
    }


@router.delete("", summary="Delete All Leads")
async def clear() -> Dict[str, Any]:
    deleted = await lead_service.clear_leads()
    return {
        "success": True,
        "message": "All leads deleted successfully",
        "deletedCount": deleted,
    }
