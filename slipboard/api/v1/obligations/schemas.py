"""Obligation (permission slip) schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Base64Bytes, BaseModel

from slipboard.core.enums import ObligationStatus, PaymentMethod


class FanOutReport(BaseModel):
    """Outcome of one obligation broadcast. failed > 0 means some slips were not written."""

    created: int = 0
    skipped: int = 0
    failed: int = 0


class SignObligationRequest(BaseModel):
    form_pdf: Optional[Base64Bytes] = None
    payment_method: Optional[PaymentMethod] = None


class DeclarePaymentRequest(BaseModel):
    payment_method: PaymentMethod


class TeacherUploadRequest(BaseModel):
    event_id: UUID
    class_id: UUID
    student_id: UUID
    form_pdf: Base64Bytes
    payment_method: Optional[PaymentMethod] = None


class CashReceivedRequest(BaseModel):
    received: bool


class ObligationResponse(BaseModel):
    id: UUID
    event_id: UUID
    class_id: UUID
    student_id: Optional[UUID] = None
    guardian_id: UUID
    status: ObligationStatus
    signed_at: Optional[datetime] = None
    has_submitted_form: bool = False
    payment_method: Optional[PaymentMethod] = None
    cash_received_at: Optional[datetime] = None
    read_at: Optional[datetime] = None
    created_at: datetime
