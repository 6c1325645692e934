"""Calendar event schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import Base64Bytes, BaseModel, Field

from slipboard.api.v1.obligations.schemas import FanOutReport


class EventCreate(BaseModel):
    school_id: UUID
    class_id: Optional[UUID] = Field(None, description="Omit for a school-wide event")
    title: str
    description: Optional[str] = None
    start_at: str = Field(..., description="ISO-8601 instant")
    end_at: str = Field(..., description="ISO-8601 instant")
    visibility: str = Field(..., description="class | school | private")
    requires_obligation_form: bool = False
    cost: Optional[Decimal] = Field(None, description="One-off events only")
    cost_per_occurrence: Optional[Decimal] = Field(None, description="Recurring events only")
    occurrence_dates: Optional[List[str]] = Field(None, description="YYYY-MM-DD; 2+ dates make the event recurring")
    obligation_due_date: Optional[str] = Field(None, description="YYYY-MM-DD")


class EventUpdate(BaseModel):
    """Partial update. Fields left out are untouched; fields sent as null are cleared."""

    title: Optional[str] = None
    description: Optional[str] = None
    start_at: Optional[str] = None
    end_at: Optional[str] = None
    requires_obligation_form: Optional[bool] = None
    cost: Optional[Decimal] = None
    cost_per_occurrence: Optional[Decimal] = None
    occurrence_dates: Optional[List[str]] = None
    obligation_due_date: Optional[str] = None


class EventCreateResponse(BaseModel):
    event_id: UUID
    fan_out: FanOutReport


class EventResponse(BaseModel):
    id: UUID
    school_id: UUID
    class_id: Optional[UUID] = None
    title: str
    description: Optional[str] = None
    start_at: datetime
    end_at: datetime
    visibility: str
    requires_obligation_form: bool
    cost: Optional[Decimal] = None
    cost_per_occurrence: Optional[Decimal] = None
    occurrence_dates: Optional[List[str]] = None
    effective_cost: Optional[Decimal] = None
    obligation_due_date: Optional[date] = None
    has_obligation_form: bool = False
    created_at: datetime


class ObligationFormUpload(BaseModel):
    form_pdf: Base64Bytes
