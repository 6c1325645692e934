"""Interview slot schemas."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class SlotWindow(BaseModel):
    start_at: str = Field(..., description="ISO-8601 instant")
    end_at: str = Field(..., description="ISO-8601 instant")


class SlotsCreate(BaseModel):
    class_id: UUID
    windows: List[SlotWindow]


class SlotsCreateResponse(BaseModel):
    count: int


class ClaimSlotRequest(BaseModel):
    student_id: UUID


class ManualBookingRequest(BaseModel):
    student_id: UUID
    guardian_name: str
    guardian_email: Optional[EmailStr] = None


class DeleteAllSlotsResponse(BaseModel):
    deleted: int


class SlotResponse(BaseModel):
    """Names are filled in only for claimed slots."""

    id: UUID
    class_id: UUID
    class_name: Optional[str] = None
    start_at: datetime
    end_at: datetime
    is_claimed: bool = False
    student_id: Optional[UUID] = None
    student_name: Optional[str] = None
    guardian_id: Optional[UUID] = None
    guardian_name: Optional[str] = None
    is_manual: bool = False
    manual_guardian_email: Optional[str] = None


class GuardianChild(BaseModel):
    student_id: UUID
    name: str
    class_id: UUID
    slot_id: Optional[UUID] = Field(None, description="Slot this child holds in the class, if any")


class GuardianClassSlots(BaseModel):
    class_id: UUID
    class_name: str
    slots: List[SlotResponse]


class GuardianInterviewData(BaseModel):
    classes: List[GuardianClassSlots]
    children: List[GuardianChild]
