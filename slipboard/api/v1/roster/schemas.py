"""Guardian link schemas."""

from uuid import UUID

from pydantic import BaseModel

from slipboard.api.v1.obligations.schemas import FanOutReport


class GuardianLinkRequest(BaseModel):
    class_id: UUID
    student_id: UUID
    guardian_id: UUID


class GuardianLinkResponse(BaseModel):
    student_id: UUID
    guardian_id: UUID
    already_linked: bool = False
    backfill: FanOutReport


class GuardianUnlinkResponse(BaseModel):
    student_id: UUID
    guardian_id: UUID
    obligations_removed: int = 0
