"""
Obligation fan-out: turns an event into one pending slip per (student, guardian).

Two triggers:
- event creation broadcasts to the class roster as it is at that moment;
- a new guardian link backfills the events of that class that are still in flight.

Both are best-effort. Each slip is its own write; a failed insert is logged and
counted, the rest of the roster still gets its slips, and the triggering
operation is reported as a success. The unique constraint on
(event_id, student_id, guardian_id) backs the existence check that precedes
every insert, so a lost race surfaces as IntegrityError and counts as skipped
once the winning row is visible; any other integrity error counts as failed.

No reconciliation sweep exists; slips missed by a failed insert stay missing
until the guardian is relinked.
"""

import logging
from datetime import datetime
from typing import Optional, Set, Tuple
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from slipboard.api.v1.events.cost import bears_obligation, has_elapsed
from slipboard.core.enums import ObligationStatus
from slipboard.core.models import CalendarEvent, Obligation
from slipboard.core.roster import class_student_ids, guardians_by_student
from slipboard.core.timeutil import utcnow

from .schemas import FanOutReport

logger = logging.getLogger(__name__)


async def _existing_pairs(db: AsyncSession, event_id: UUID) -> Set[Tuple[Optional[UUID], UUID]]:
    result = await db.execute(
        select(Obligation.student_id, Obligation.guardian_id).where(Obligation.event_id == event_id)
    )
    return {(student_id, guardian_id) for student_id, guardian_id in result.all()}


async def _obligation_exists(db: AsyncSession, event_id: UUID, student_id: UUID, guardian_id: UUID) -> bool:
    result = await db.execute(
        select(Obligation.id).where(
            Obligation.event_id == event_id,
            Obligation.student_id == student_id,
            Obligation.guardian_id == guardian_id,
        )
    )
    return result.first() is not None


async def _insert_pending(
    db: AsyncSession,
    report: FanOutReport,
    *,
    event_id: UUID,
    class_id: UUID,
    student_id: UUID,
    guardian_id: UUID,
) -> None:
    """Write one slip and commit it on its own so a failure cannot take siblings with it."""
    try:
        db.add(
            Obligation(
                event_id=event_id,
                class_id=class_id,
                student_id=student_id,
                guardian_id=guardian_id,
                status=ObligationStatus.PENDING.value,
            )
        )
        await db.commit()
        report.created += 1
    except IntegrityError:
        await db.rollback()
        # Only a row already holding the triple counts as covered; FK and NOT NULL violations are failures.
        if await _obligation_exists(db, event_id, student_id, guardian_id):
            report.skipped += 1
            return
        report.failed += 1
        logger.exception(
            "Slip insert rejected event=%s student=%s guardian=%s", event_id, student_id, guardian_id
        )
    except SQLAlchemyError:
        await db.rollback()
        report.failed += 1
        logger.exception(
            "Slip insert failed event=%s student=%s guardian=%s", event_id, student_id, guardian_id
        )


def _log_report(trigger: str, subject: str, report: FanOutReport) -> None:
    if report.failed:
        logger.warning(
            "Partial fan-out (%s) for %s: created=%d skipped=%d failed=%d",
            trigger, subject, report.created, report.skipped, report.failed,
        )
    else:
        logger.info(
            "Fan-out (%s) for %s: created=%d skipped=%d",
            trigger, subject, report.created, report.skipped,
        )


async def fan_out_event(db: AsyncSession, event: CalendarEvent) -> FanOutReport:
    """Create a pending slip for every (enrolled student, linked guardian) of the event's class.
    Snapshot of the roster at call time; later links are handled by backfill_guardian_link.
    """
    report = FanOutReport()
    # Read ids up front: a rollback inside the loop expires ORM instances.
    event_id, class_id = event.id, event.class_id
    if class_id is None or not bears_obligation(event):
        return report

    student_ids = await class_student_ids(db, class_id)
    links = await guardians_by_student(db, student_ids)
    covered = await _existing_pairs(db, event_id)

    for student_id in student_ids:
        for guardian_id in links.get(student_id, []):
            if (student_id, guardian_id) in covered:
                report.skipped += 1
                continue
            await _insert_pending(
                db, report,
                event_id=event_id, class_id=class_id,
                student_id=student_id, guardian_id=guardian_id,
            )
            covered.add((student_id, guardian_id))

    _log_report("event", f"event={event_id}", report)
    return report


async def backfill_guardian_link(
    db: AsyncSession,
    class_id: UUID,
    student_id: UUID,
    guardian_id: UUID,
    now: Optional[datetime] = None,
) -> FanOutReport:
    """Create the slips a newly linked guardian would have received had the link
    existed when each still-running obligation-bearing event of the class was created.
    Idempotent: triples that already have a slip are skipped.
    """
    report = FanOutReport()
    now = now or utcnow()

    result = await db.execute(
        select(CalendarEvent).where(
            CalendarEvent.class_id == class_id,
            or_(
                CalendarEvent.requires_obligation_form.is_(True),
                CalendarEvent.cost > 0,
                CalendarEvent.cost_per_occurrence > 0,
            ),
        )
    )
    event_ids = [
        event.id
        for event in result.scalars().all()
        if bears_obligation(event) and not has_elapsed(event, now)
    ]

    for event_id in event_ids:
        if await _obligation_exists(db, event_id, student_id, guardian_id):
            report.skipped += 1
            continue
        await _insert_pending(
            db, report,
            event_id=event_id, class_id=class_id,
            student_id=student_id, guardian_id=guardian_id,
        )

    _log_report("link", f"student={student_id} guardian={guardian_id}", report)
    return report
