"""Guardian-student links. Linking backfills slips for events already in flight."""

import logging
from uuid import UUID

from sqlalchemy import delete, insert
from sqlalchemy.ext.asyncio import AsyncSession

from slipboard.api.v1.obligations.fanout import backfill_guardian_link
from slipboard.core.exceptions import InvalidInputError, NotFoundError
from slipboard.core.models import Obligation, student_guardians
from slipboard.core.roster import get_class_for_teacher_or_404, has_joined_class, is_enrolled, is_guardian_of

from .schemas import GuardianLinkResponse, GuardianUnlinkResponse

logger = logging.getLogger(__name__)


async def link_guardian_to_student(
    db: AsyncSession,
    teacher_id: UUID,
    class_id: UUID,
    student_id: UUID,
    guardian_id: UUID,
) -> GuardianLinkResponse:
    """Link a parent who joined the class to an enrolled student.

    An existing link is left alone, but the backfill still runs: it is idempotent
    and repairs slips a previous partial fan-out missed.
    """
    await get_class_for_teacher_or_404(db, class_id, teacher_id)
    if not await is_enrolled(db, class_id, student_id):
        raise InvalidInputError("Student not in this class")
    if not await has_joined_class(db, class_id, guardian_id):
        raise NotFoundError("Parent has not joined this class")

    already_linked = await is_guardian_of(db, student_id, guardian_id)
    if not already_linked:
        await db.execute(insert(student_guardians).values(student_id=student_id, guardian_id=guardian_id))
        await db.commit()
        logger.info("Guardian %s linked to student %s by %s", guardian_id, student_id, teacher_id)

    report = await backfill_guardian_link(db, class_id, student_id, guardian_id)
    return GuardianLinkResponse(
        student_id=student_id,
        guardian_id=guardian_id,
        already_linked=already_linked,
        backfill=report,
    )


async def unlink_guardian_from_student(
    db: AsyncSession,
    teacher_id: UUID,
    class_id: UUID,
    student_id: UUID,
    guardian_id: UUID,
) -> GuardianUnlinkResponse:
    """Remove the link and every slip addressed to that (student, guardian) pair."""
    await get_class_for_teacher_or_404(db, class_id, teacher_id)
    if not await is_enrolled(db, class_id, student_id):
        raise InvalidInputError("Student not in this class")
    if not await is_guardian_of(db, student_id, guardian_id):
        raise NotFoundError("Link not found")

    await db.execute(
        delete(student_guardians).where(
            student_guardians.c.student_id == student_id,
            student_guardians.c.guardian_id == guardian_id,
        )
    )
    removed = await db.execute(
        delete(Obligation).where(
            Obligation.student_id == student_id,
            Obligation.guardian_id == guardian_id,
        )
    )
    await db.commit()
    logger.info(
        "Guardian %s unlinked from student %s (%d slips removed)", guardian_id, student_id, removed.rowcount
    )
    return GuardianUnlinkResponse(
        student_id=student_id,
        guardian_id=guardian_id,
        obligations_removed=removed.rowcount,
    )
