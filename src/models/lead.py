"""Lead models - Request bodies and database records."""

from datetime import datetime
from typing import Optional, List, Any
from pydantic import BaseModel, Field, field_validator

from src.models.enums import LeadStatus, LeadSource, LeadRole, LeadResult


class LeadCreate(BaseModel):
    """Body of POST /api/leads."""
    phone: str = Field(..., min_length=1, description="Contact phone number")
    source: LeadSource = Field(..., description="Whether the lead is new or from an old list")
    name: Optional[str] = Field(None, description="Contact name")
    area: Optional[str] = Field(None, description="Area of interest")
    budget: Optional[str] = Field(None, description="Stated budget")

    @field_validator("phone")
    @classmethod
    def phone_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Phone is required")
        return value

    @field_validator("name", "area", "budget")
    @classmethod
    def blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value


class LeadUpdate(BaseModel):
    """
    Body of PUT /api/leads/{id}.

    Unknown keys (including id and timestamps) are ignored; only fields
    explicitly sent are applied.
    """
    name: Optional[str] = None
    phone: Optional[str] = None
    source: Optional[LeadSource] = None
    role: Optional[LeadRole] = None
    area: Optional[str] = None
    budget: Optional[str] = None
    demand_price: Optional[str] = None
    status: Optional[LeadStatus] = None
    result: Optional[LeadResult] = None
    call_attempts: Optional[int] = Field(None, ge=0)
    last_call_at: Optional[datetime] = None

    model_config = {"extra": "ignore"}

    @field_validator("phone")
    @classmethod
    def phone_not_blank(cls, value: Optional[str]) -> str:
        # Only runs when phone is sent
        value = (value or "").strip()
        if not value:
            raise ValueError("Phone cannot be blank")
        return value


class LeadRecord(BaseModel):
    """Database record for a lead."""
    id: Optional[str] = Field(None, description="Database record ID")
    phone: str = Field(..., description="Phone number (unique)")
    name: Optional[str] = None
    source: LeadSource = Field(..., description="Lead source")
    role: Optional[LeadRole] = None
    area: Optional[str] = None
    budget: Optional[str] = None
    demand_price: Optional[str] = None

    status: LeadStatus = Field(LeadStatus.PENDING, description="Current pipeline status")
    result: Optional[LeadResult] = None

    call_attempts: int = Field(0, ge=0, description="Number of calls placed")
    last_call_at: Optional[datetime] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True, "extra": "ignore"}

    @field_validator("id", mode="before")
    @classmethod
    def id_to_str(cls, value: Any) -> Optional[str]:
        return str(value) if value is not None else None

    @field_validator("call_attempts", mode="before")
    @classmethod
    def null_attempts(cls, value: Any) -> int:
        return value or 0


class LeadFilters(BaseModel):
    """Dashboard filters for listing leads."""
    status: Optional[LeadStatus] = None
    result: Optional[LeadResult] = None
    role: Optional[LeadRole] = None
    source: Optional[LeadSource] = None

    def as_query(self) -> dict:
        return {key: value.value for key, value in self.model_dump(exclude_none=True).items()}


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        pages = (total + limit - 1) // limit if limit else 0
        return cls(page=page, limit=limit, total=total, pages=pages)


class LeadPage(BaseModel):
    leads: List[LeadRecord] = Field(default_factory=list)
    pagination: Pagination


class LeadTransitions(BaseModel):
    """Legal next statuses for a lead, for presenting choices."""
    lead_id: str
    status: LeadStatus
    valid_transitions: List[LeadStatus] = Field(default_factory=list)
    is_terminal: bool
