"""Read-side views for parent and teacher dashboards."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel

from slipboard.core.enums import InboxItemStatus, ObligationStatus, PaymentMethod, StudentSlipStatus


class InboxItem(BaseModel):
    obligation_id: UUID
    event_id: UUID
    event_title: str
    event_start_at: datetime
    event_end_at: datetime
    class_id: UUID
    class_name: Optional[str] = None
    student_id: Optional[UUID] = None
    student_name: Optional[str] = None
    status: InboxItemStatus
    obligation_status: ObligationStatus
    read_at: Optional[datetime] = None
    signed_at: Optional[datetime] = None
    requires_obligation_form: bool = False
    has_obligation_form: bool = False
    obligation_due_date: Optional[date] = None
    effective_cost: Optional[Decimal] = None
    occurrence_dates: Optional[List[str]] = None
    payment_method: Optional[PaymentMethod] = None
    created_at: datetime


class StudentSlipStatusItem(BaseModel):
    student_id: UUID
    student_name: str
    status: StudentSlipStatus
    obligation_id: Optional[UUID] = None
    signed_by: Optional[str] = None
    signed_at: Optional[datetime] = None
    payment_method: Optional[PaymentMethod] = None
    cash_received: bool = False


class EventStatusCounts(BaseModel):
    total: int = 0
    signed: int = 0
    pending: int = 0


class EventStatus(BaseModel):
    event_id: UUID
    event_title: str
    class_id: UUID
    effective_cost: Optional[Decimal] = None
    students: List[StudentSlipStatusItem]
    counts: EventStatusCounts


class EventStatusRequest(BaseModel):
    event_ids: List[UUID]
