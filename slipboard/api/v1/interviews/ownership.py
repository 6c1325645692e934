"""
Who holds an interview slot.

A slot is held either by a guardian account (self-service claim) or by a
manual booking a teacher made for a parent without an account. A manual
booking also counts as the caller's own when its email matches the caller's
registered email, so a parent who signs up later can release it.
"""

from dataclasses import dataclass
from typing import Optional, Union
from uuid import UUID

from sqlalchemy import and_, or_

from slipboard.core.models import InterviewSlot


@dataclass(frozen=True)
class GuardianClaim:
    guardian_id: UUID

    def resolves_to(self, caller_id: UUID, caller_email: Optional[str] = None) -> bool:
        return self.guardian_id == caller_id


@dataclass(frozen=True)
class ManualClaim:
    name: Optional[str]
    email: Optional[str]

    def resolves_to(self, caller_id: UUID, caller_email: Optional[str] = None) -> bool:
        if not self.email or not caller_email:
            return False
        return self.email.strip().lower() == caller_email.strip().lower()


ClaimedBy = Union[GuardianClaim, ManualClaim]


def claimed_by(slot: InterviewSlot) -> Optional[ClaimedBy]:
    """Holder of the slot, or None when it is open."""
    if slot.student_id is None:
        return None
    if slot.guardian_id is not None:
        return GuardianClaim(slot.guardian_id)
    if slot.manual_guardian_name or slot.manual_guardian_email:
        return ManualClaim(slot.manual_guardian_name, slot.manual_guardian_email)
    return None


def is_claimed(slot: InterviewSlot) -> bool:
    return claimed_by(slot) is not None


def unclaimed_clause():
    """SQL negation of is_claimed, used as the precondition of claim writes."""
    return or_(
        InterviewSlot.student_id.is_(None),
        and_(
            InterviewSlot.guardian_id.is_(None),
            InterviewSlot.manual_guardian_name.is_(None),
            InterviewSlot.manual_guardian_email.is_(None),
        ),
    )
