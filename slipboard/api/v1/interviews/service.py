"""
Interview slot claim engine.

Slots are created in bulk by a class teacher and claimed one child at a time.
A child holds at most one slot per class: the check before each write looks
across the class, and the (class_id, student_id) unique constraint catches
what a concurrent claim slips past it. Claim writes are conditional on the
slot still being open, so of two guardians racing for one slot exactly one wins.
"""

import logging
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from slipboard.core.config import settings
from slipboard.core.exceptions import ConflictError, InvalidInputError, NotFoundError
from slipboard.core.models import InterviewSlot, SchoolClass, class_students, student_guardians
from slipboard.core.roster import (
    get_class_for_teacher_or_404,
    guardian_class_ids,
    has_joined_class,
    is_enrolled,
    is_guardian_of,
    student_names,
    teacher_class_ids,
    user_display_names,
    user_email,
)
from slipboard.core.timeutil import parse_instant

from .ownership import ManualClaim, claimed_by, is_claimed, unclaimed_clause
from .schemas import (
    GuardianChild,
    GuardianClassSlots,
    GuardianInterviewData,
    SlotResponse,
    SlotWindow,
)

logger = logging.getLogger(__name__)

ALREADY_CLAIMED = "This slot is already claimed"
CHILD_HAS_SLOT = "This child already has a slot in this class"

_CLEARED = {
    "student_id": None,
    "guardian_id": None,
    "manual_guardian_name": None,
    "manual_guardian_email": None,
}


def _same(column, value):
    return column.is_(None) if value is None else column == value


async def _get_slot_or_404(db: AsyncSession, slot_id: UUID) -> InterviewSlot:
    slot = await db.get(InterviewSlot, slot_id)
    if not slot:
        raise NotFoundError("Slot not found")
    return slot


async def _child_has_other_slot(db: AsyncSession, class_id: UUID, student_id: UUID, slot_id: UUID) -> bool:
    result = await db.execute(
        select(InterviewSlot.id).where(
            InterviewSlot.class_id == class_id,
            InterviewSlot.student_id == student_id,
            InterviewSlot.id != slot_id,
        )
    )
    return result.first() is not None


async def _claim(db: AsyncSession, slot: InterviewSlot, values: dict) -> InterviewSlot:
    """Single conditional write: lands only if the slot is still open."""
    slot_id = slot.id
    try:
        result = await db.execute(
            update(InterviewSlot)
            .where(InterviewSlot.id == slot_id, unclaimed_clause())
            .values(**values)
        )
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(CHILD_HAS_SLOT)
    if result.rowcount == 0:
        raise ConflictError(ALREADY_CLAIMED)
    return await db.get(InterviewSlot, slot_id, populate_existing=True)


def _slot_to_response(
    slot: InterviewSlot,
    class_name: Optional[str],
    students: Dict[UUID, str],
    guardians: Dict[UUID, str],
) -> SlotResponse:
    holder = claimed_by(slot)
    response = SlotResponse(
        id=slot.id,
        class_id=slot.class_id,
        class_name=class_name,
        start_at=slot.start_at,
        end_at=slot.end_at,
        is_claimed=holder is not None,
    )
    if holder is None:
        return response
    response.student_id = slot.student_id
    response.student_name = students.get(slot.student_id, "Unknown")
    if isinstance(holder, ManualClaim):
        response.is_manual = True
        response.guardian_name = holder.name or holder.email
        response.manual_guardian_email = holder.email
    else:
        response.guardian_id = holder.guardian_id
        response.guardian_name = guardians.get(holder.guardian_id, "Unknown")
    return response


async def _slots_to_responses(db: AsyncSession, slots: List[InterviewSlot]) -> List[SlotResponse]:
    class_ids = {s.class_id for s in slots}
    class_names: Dict[UUID, str] = {}
    if class_ids:
        result = await db.execute(select(SchoolClass.id, SchoolClass.name).where(SchoolClass.id.in_(list(class_ids))))
        class_names = {cid: name for cid, name in result.all()}
    claimed = [s for s in slots if is_claimed(s)]
    students = await student_names(db, [s.student_id for s in claimed])
    guardians = await user_display_names(db, [s.guardian_id for s in claimed])
    return [_slot_to_response(s, class_names.get(s.class_id), students, guardians) for s in slots]


# --- Teacher: slot management ---


async def create_slots(
    db: AsyncSession,
    teacher_id: UUID,
    class_id: UUID,
    windows: List[SlotWindow],
) -> int:
    await get_class_for_teacher_or_404(db, class_id, teacher_id)
    if not windows:
        raise InvalidInputError("At least one slot is required")
    if len(windows) > settings.max_slots_per_request:
        raise InvalidInputError(f"At most {settings.max_slots_per_request} slots per request")

    slots = []
    for window in windows:
        start_at = parse_instant(window.start_at)
        end_at = parse_instant(window.end_at)
        if start_at is None or end_at is None:
            raise InvalidInputError("Invalid slot time")
        if end_at <= start_at:
            raise InvalidInputError("Slot end must be after its start")
        slots.append(InterviewSlot(class_id=class_id, start_at=start_at, end_at=end_at))

    db.add_all(slots)
    await db.commit()
    logger.info("Created %d interview slots for class %s", len(slots), class_id)
    return len(slots)


async def book_manually(
    db: AsyncSession,
    teacher_id: UUID,
    slot_id: UUID,
    student_id: UUID,
    guardian_name: str,
    guardian_email: Optional[str] = None,
) -> SlotResponse:
    """Teacher books a slot for a parent who has no account."""
    name = (guardian_name or "").strip()
    if not name:
        raise InvalidInputError("Parent name is required")
    email = (guardian_email or "").strip() or None
    slot = await _get_slot_or_404(db, slot_id)
    await get_class_for_teacher_or_404(db, slot.class_id, teacher_id)
    if is_claimed(slot):
        raise ConflictError(ALREADY_CLAIMED)
    if not await is_enrolled(db, slot.class_id, student_id):
        raise InvalidInputError("Student not in this class")
    if await _child_has_other_slot(db, slot.class_id, student_id, slot.id):
        raise ConflictError(CHILD_HAS_SLOT)

    slot = await _claim(
        db,
        slot,
        {
            "student_id": student_id,
            "guardian_id": None,
            "manual_guardian_name": name,
            "manual_guardian_email": email,
        },
    )
    logger.info("Slot %s booked manually for student %s by %s", slot_id, student_id, teacher_id)
    return (await _slots_to_responses(db, [slot]))[0]


async def unbook_slot(db: AsyncSession, teacher_id: UUID, slot_id: UUID) -> SlotResponse:
    """Teacher releases any booking on the slot. Releasing an open slot is a no-op."""
    slot = await _get_slot_or_404(db, slot_id)
    await get_class_for_teacher_or_404(db, slot.class_id, teacher_id)
    await db.execute(update(InterviewSlot).where(InterviewSlot.id == slot_id).values(**_CLEARED))
    await db.commit()
    slot = await db.get(InterviewSlot, slot_id, populate_existing=True)
    return (await _slots_to_responses(db, [slot]))[0]


async def delete_slot(db: AsyncSession, teacher_id: UUID, slot_id: UUID) -> None:
    slot = await _get_slot_or_404(db, slot_id)
    await get_class_for_teacher_or_404(db, slot.class_id, teacher_id)
    await db.delete(slot)
    await db.commit()


async def delete_all_slots(db: AsyncSession, teacher_id: UUID, class_id: UUID) -> int:
    await get_class_for_teacher_or_404(db, class_id, teacher_id)
    result = await db.execute(delete(InterviewSlot).where(InterviewSlot.class_id == class_id))
    await db.commit()
    logger.info("Deleted %d interview slots for class %s", result.rowcount, class_id)
    return result.rowcount


# --- Parent: self-service ---


async def claim_slot(db: AsyncSession, guardian_id: UUID, slot_id: UUID, student_id: UUID) -> SlotResponse:
    slot = await _get_slot_or_404(db, slot_id)
    if is_claimed(slot):
        raise ConflictError(ALREADY_CLAIMED)
    if not await is_guardian_of(db, student_id, guardian_id):
        raise NotFoundError("Student not found")
    if not await is_enrolled(db, slot.class_id, student_id):
        raise InvalidInputError("Student not in this class")
    if not await has_joined_class(db, slot.class_id, guardian_id):
        raise NotFoundError("Slot not found")
    if await _child_has_other_slot(db, slot.class_id, student_id, slot.id):
        raise ConflictError(CHILD_HAS_SLOT)

    slot = await _claim(
        db,
        slot,
        {
            "student_id": student_id,
            "guardian_id": guardian_id,
            "manual_guardian_name": None,
            "manual_guardian_email": None,
        },
    )
    logger.info("Slot %s claimed by guardian %s for student %s", slot_id, guardian_id, student_id)
    return (await _slots_to_responses(db, [slot]))[0]


async def unclaim_slot(db: AsyncSession, guardian_id: UUID, slot_id: UUID) -> SlotResponse:
    """Release a slot the caller holds, either directly or through a manual booking under their email."""
    slot = await _get_slot_or_404(db, slot_id)
    holder = claimed_by(slot)
    caller_email = await user_email(db, guardian_id)
    if holder is None or not holder.resolves_to(guardian_id, caller_email):
        raise NotFoundError("Slot not found")

    # The write only lands if the holder has not changed since the read above.
    result = await db.execute(
        update(InterviewSlot)
        .where(
            InterviewSlot.id == slot_id,
            _same(InterviewSlot.student_id, slot.student_id),
            _same(InterviewSlot.guardian_id, slot.guardian_id),
            _same(InterviewSlot.manual_guardian_email, slot.manual_guardian_email),
        )
        .values(**_CLEARED)
    )
    await db.commit()
    if result.rowcount == 0:
        raise ConflictError("Slot changed while saving. Please try again.")
    logger.info("Slot %s released by guardian %s", slot_id, guardian_id)
    slot = await db.get(InterviewSlot, slot_id, populate_existing=True)
    return (await _slots_to_responses(db, [slot]))[0]


# --- Views ---


async def list_slots_for_class(db: AsyncSession, teacher_id: UUID, class_id: UUID) -> List[SlotResponse]:
    await get_class_for_teacher_or_404(db, class_id, teacher_id)
    result = await db.execute(
        select(InterviewSlot).where(InterviewSlot.class_id == class_id).order_by(InterviewSlot.start_at)
    )
    return await _slots_to_responses(db, list(result.scalars().all()))


async def list_slots_for_teacher(db: AsyncSession, teacher_id: UUID) -> List[SlotResponse]:
    class_ids = await teacher_class_ids(db, teacher_id)
    if not class_ids:
        return []
    result = await db.execute(
        select(InterviewSlot).where(InterviewSlot.class_id.in_(list(class_ids))).order_by(InterviewSlot.start_at)
    )
    return await _slots_to_responses(db, list(result.scalars().all()))


async def interview_data_for_guardian(db: AsyncSession, guardian_id: UUID) -> GuardianInterviewData:
    """Slots of every class the parent joined, plus their children there and the slot each one holds."""
    class_ids = await guardian_class_ids(db, guardian_id)
    if not class_ids:
        return GuardianInterviewData(classes=[], children=[])
    caller_email = await user_email(db, guardian_id)

    result = await db.execute(
        select(SchoolClass.id, SchoolClass.name).where(SchoolClass.id.in_(class_ids)).order_by(SchoolClass.name)
    )
    classes = result.all()

    result = await db.execute(
        select(InterviewSlot).where(InterviewSlot.class_id.in_(class_ids)).order_by(InterviewSlot.start_at)
    )
    slots = list(result.scalars().all())
    responses = await _slots_to_responses(db, slots)

    by_class: Dict[UUID, List[SlotResponse]] = {cid: [] for cid, _ in classes}
    held: Dict[tuple, UUID] = {}
    for slot, response in zip(slots, responses):
        by_class.setdefault(slot.class_id, []).append(response)
        holder = claimed_by(slot)
        if holder is not None and holder.resolves_to(guardian_id, caller_email):
            held[(slot.class_id, slot.student_id)] = slot.id

    result = await db.execute(
        select(class_students.c.class_id, class_students.c.student_id)
        .join(student_guardians, student_guardians.c.student_id == class_students.c.student_id)
        .where(
            student_guardians.c.guardian_id == guardian_id,
            class_students.c.class_id.in_(class_ids),
        )
    )
    pairs = result.all()
    names = await student_names(db, [sid for _, sid in pairs])
    children = [
        GuardianChild(
            student_id=sid,
            name=names.get(sid, "Unknown"),
            class_id=cid,
            slot_id=held.get((cid, sid)),
        )
        for cid, sid in sorted(pairs, key=lambda p: (names.get(p[1], ""), str(p[0])))
    ]

    return GuardianInterviewData(
        classes=[
            GuardianClassSlots(class_id=cid, class_name=name, slots=by_class.get(cid, []))
            for cid, name in classes
        ],
        children=children,
    )

