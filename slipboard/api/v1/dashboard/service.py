"""
Dashboard projections over slips.

Parent inbox: one row per slip addressed to the parent, newest first.
Event status: per enrolled student, signed if any slip for the pair is signed,
pending if one exists, no_parent otherwise. no_parent students count as pending.
"""

from typing import Dict, List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from slipboard.api.v1.events.cost import bears_obligation, effective_cost
from slipboard.api.v1.obligations.service import resolve_payment_method
from slipboard.core.enums import InboxItemStatus, ObligationStatus, PaymentMethod, StudentSlipStatus
from slipboard.core.models import CalendarEvent, Obligation, SchoolClass
from slipboard.core.roster import (
    class_student_ids,
    class_teacher_ids,
    student_names,
    teacher_class_ids,
    user_display_names,
)

from .schemas import EventStatus, EventStatusCounts, InboxItem, StudentSlipStatusItem

TEACHER_LABEL = "Teacher"


async def get_parent_inbox(db: AsyncSession, guardian_id: UUID) -> List[InboxItem]:
    result = await db.execute(
        select(Obligation, CalendarEvent, SchoolClass.name)
        .join(CalendarEvent, CalendarEvent.id == Obligation.event_id)
        .outerjoin(SchoolClass, SchoolClass.id == Obligation.class_id)
        .where(Obligation.guardian_id == guardian_id)
        .order_by(Obligation.created_at.desc())
    )
    rows = [row for row in result.all() if bears_obligation(row[1])]
    names = await student_names(db, [o.student_id for o, _, _ in rows])

    items = []
    for obligation, event, class_name in rows:
        signed = obligation.status == ObligationStatus.SIGNED.value
        items.append(
            InboxItem(
                obligation_id=obligation.id,
                event_id=event.id,
                event_title=event.title,
                event_start_at=event.start_at,
                event_end_at=event.end_at,
                class_id=obligation.class_id,
                class_name=class_name,
                student_id=obligation.student_id,
                student_name=names.get(obligation.student_id),
                status=InboxItemStatus.COMPLETED if signed else InboxItemStatus.UNREAD,
                obligation_status=obligation.status,
                read_at=obligation.read_at,
                signed_at=obligation.signed_at,
                requires_obligation_form=bool(event.requires_obligation_form),
                has_obligation_form=event.obligation_form is not None,
                obligation_due_date=event.obligation_due_date,
                effective_cost=effective_cost(event),
                occurrence_dates=event.occurrence_dates,
                payment_method=obligation.payment_method,
                created_at=obligation.created_at,
            )
        )
    return items


async def get_pending_tasks(db: AsyncSession, guardian_id: UUID) -> List[InboxItem]:
    inbox = await get_parent_inbox(db, guardian_id)
    return [item for item in inbox if item.obligation_status == ObligationStatus.PENDING]


async def get_event_status(db: AsyncSession, teacher_id: UUID, event_ids: List[UUID]) -> List[EventStatus]:
    """Status per requested event. Events the teacher cannot see are left out."""
    if not event_ids:
        return []
    allowed_classes = await teacher_class_ids(db, teacher_id)
    result = await db.execute(select(CalendarEvent).where(CalendarEvent.id.in_(event_ids)))
    events = {
        e.id: e for e in result.scalars().all()
        if e.class_id is not None and e.class_id in allowed_classes
    }

    statuses = []
    for event_id in event_ids:
        event = events.get(event_id)
        if event is None:
            continue
        statuses.append(await _event_status(db, event))
    return statuses


async def _event_status(db: AsyncSession, event: CalendarEvent) -> EventStatus:
    student_ids = await class_student_ids(db, event.class_id)
    teachers = await class_teacher_ids(db, event.class_id)
    result = await db.execute(
        select(Obligation).where(Obligation.event_id == event.id).order_by(Obligation.created_at)
    )
    by_student: Dict[UUID, List[Obligation]] = {}
    for obligation in result.scalars().all():
        by_student.setdefault(obligation.student_id, []).append(obligation)

    names = await student_names(db, student_ids)
    guardian_names = await user_display_names(
        db, [o.guardian_id for slips in by_student.values() for o in slips if o.guardian_id not in teachers]
    )

    students = []
    counts = EventStatusCounts()
    for student_id in sorted(student_ids, key=lambda sid: names.get(sid, "")):
        slips = by_student.get(student_id, [])
        signed = next((o for o in slips if o.status == ObligationStatus.SIGNED.value), None)
        item = StudentSlipStatusItem(
            student_id=student_id,
            student_name=names.get(student_id, "Unknown"),
            status=StudentSlipStatus.NO_PARENT,
        )
        if signed is not None:
            method = resolve_payment_method(signed, teachers)
            item.status = StudentSlipStatus.SIGNED
            item.obligation_id = signed.id
            item.signed_at = signed.signed_at
            item.signed_by = (
                TEACHER_LABEL if signed.guardian_id in teachers
                else guardian_names.get(signed.guardian_id, "Unknown")
            )
            item.payment_method = method
            item.cash_received = method == PaymentMethod.CASH and signed.cash_received_at is not None
            counts.signed += 1
        elif slips:
            item.status = StudentSlipStatus.PENDING
            item.obligation_id = slips[0].id
            counts.pending += 1
        else:
            counts.pending += 1
        students.append(item)
    counts.total = len(students)

    return EventStatus(
        event_id=event.id,
        event_title=event.title,
        class_id=event.class_id,
        effective_cost=effective_cost(event),
        students=students,
        counts=counts,
    )
