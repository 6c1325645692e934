"""
Obligation lifecycle: sign, unsign, payment declaration, teacher upload, cash receipt.

Every transition is one conditional UPDATE whose WHERE clause repeats the
precondition (owner and current status). The read before it only picks the
error message; a concurrent double-submit loses at the UPDATE and gets a
Conflict, never a silent overwrite.

State machine:
    pending --sign / declare_payment_only / teacher_direct_upload--> signed
    signed  --unsign--> pending
    signed  --declare_payment_only / mark_cash_received--> signed
"""

import logging
from typing import Optional, Set, Tuple
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from slipboard.api.v1.events.cost import is_payment_bearing
from slipboard.auth.schemas import CurrentUser
from slipboard.core.blobs import check_form_blob, download_filename
from slipboard.core.config import settings
from slipboard.core.enums import ObligationStatus, PaymentMethod
from slipboard.core.exceptions import ConflictError, InvalidInputError, NotFoundError
from slipboard.core.models import CalendarEvent, Obligation
from slipboard.core.roster import class_teacher_ids, get_class_for_teacher_or_404, is_class_teacher, is_enrolled
from slipboard.core.timeutil import utcnow

from .schemas import ObligationResponse

logger = logging.getLogger(__name__)

PENDING = ObligationStatus.PENDING.value
SIGNED = ObligationStatus.SIGNED.value


def resolve_payment_method(obligation: Obligation, teacher_ids: Set[UUID]) -> Optional[PaymentMethod]:
    """Declared method, else cash for paper slips a teacher submitted, else None."""
    if obligation.payment_method:
        return PaymentMethod(obligation.payment_method)
    if obligation.status == SIGNED and obligation.guardian_id in teacher_ids:
        return PaymentMethod.CASH
    return None


def obligation_to_response(obligation: Obligation) -> ObligationResponse:
    return ObligationResponse(
        id=obligation.id,
        event_id=obligation.event_id,
        class_id=obligation.class_id,
        student_id=obligation.student_id,
        guardian_id=obligation.guardian_id,
        status=obligation.status,
        signed_at=obligation.signed_at,
        has_submitted_form=obligation.submitted_form is not None,
        payment_method=obligation.payment_method,
        cash_received_at=obligation.cash_received_at,
        read_at=obligation.read_at,
        created_at=obligation.created_at,
    )


async def _get_guardian_obligation_or_404(db: AsyncSession, obligation_id: UUID, guardian_id: UUID) -> Obligation:
    obligation = await db.get(Obligation, obligation_id)
    if not obligation or obligation.guardian_id != guardian_id:
        raise NotFoundError("Permission slip not found")
    return obligation


async def _get_teacher_obligation_or_404(db: AsyncSession, obligation_id: UUID, teacher_id: UUID) -> Obligation:
    obligation = await db.get(Obligation, obligation_id)
    if not obligation or not await is_class_teacher(db, obligation.class_id, teacher_id):
        raise NotFoundError("Permission slip not found")
    return obligation


async def _get_event_or_404(db: AsyncSession, event_id: UUID) -> CalendarEvent:
    event = await db.get(CalendarEvent, event_id)
    if not event:
        raise NotFoundError("Event not found")
    return event


async def _guarded_update(db: AsyncSession, *criteria, values: dict) -> int:
    result = await db.execute(update(Obligation).where(*criteria).values(**values))
    await db.commit()
    return result.rowcount


async def sign_obligation(
    db: AsyncSession,
    guardian_id: UUID,
    obligation_id: UUID,
    form: Optional[bytes] = None,
    payment_method: Optional[PaymentMethod] = None,
) -> ObligationResponse:
    """Parent submits a slip: signed form when the event asks for one, payment method when it costs money."""
    if form is not None:
        check_form_blob(form, settings.max_signed_form_bytes)
    obligation = await _get_guardian_obligation_or_404(db, obligation_id, guardian_id)
    if obligation.status != PENDING:
        raise ConflictError("Permission slip not found or already signed")
    event = await _get_event_or_404(db, obligation.event_id)
    if event.requires_obligation_form and form is None:
        raise InvalidInputError("Please upload the signed permission form")
    if is_payment_bearing(event) and payment_method is None:
        raise InvalidInputError("Please select how you will pay (online or cash)")

    values = {
        "status": SIGNED,
        "signed_at": utcnow(),
        "submitted_form": form,
        "payment_method": payment_method.value if payment_method else None,
        "cash_received_at": None,
    }
    matched = await _guarded_update(
        db,
        Obligation.id == obligation_id,
        Obligation.guardian_id == guardian_id,
        Obligation.status == PENDING,
        values=values,
    )
    if matched == 0:
        raise ConflictError("Permission slip not found or already signed")
    logger.info("Slip %s signed by guardian %s", obligation_id, guardian_id)
    await db.refresh(obligation)
    return obligation_to_response(obligation)


async def unsign_obligation(db: AsyncSession, guardian_id: UUID, obligation_id: UUID) -> ObligationResponse:
    """Revoke a submission so the parent can send a different form."""
    obligation = await _get_guardian_obligation_or_404(db, obligation_id, guardian_id)
    matched = await _guarded_update(
        db,
        Obligation.id == obligation_id,
        Obligation.guardian_id == guardian_id,
        Obligation.status == SIGNED,
        values={
            "status": PENDING,
            "signed_at": None,
            "submitted_form": None,
            "payment_method": None,
            "cash_received_at": None,
        },
    )
    if matched == 0:
        raise ConflictError("Permission slip not found or not yet signed")
    logger.info("Slip %s unsigned by guardian %s", obligation_id, guardian_id)
    await db.refresh(obligation)
    return obligation_to_response(obligation)


async def declare_payment_only(
    db: AsyncSession,
    guardian_id: UUID,
    obligation_id: UUID,
    payment_method: PaymentMethod,
) -> ObligationResponse:
    """For events with a cost but no form: record how the parent will pay.
    Pending slips become signed; signed slips get their method changed in place.
    """
    obligation = await _get_guardian_obligation_or_404(db, obligation_id, guardian_id)
    event = await _get_event_or_404(db, obligation.event_id)
    if event.requires_obligation_form:
        raise InvalidInputError("This event requires a signed permission form. Please upload the PDF.")
    if not is_payment_bearing(event):
        raise InvalidInputError("This event has no cost. No payment method needed.")

    if obligation.status == PENDING:
        matched = await _guarded_update(
            db,
            Obligation.id == obligation_id,
            Obligation.guardian_id == guardian_id,
            Obligation.status == PENDING,
            values={"status": SIGNED, "signed_at": utcnow(), "payment_method": payment_method.value},
        )
    else:
        values = {"payment_method": payment_method.value}
        if payment_method != PaymentMethod.CASH:
            values["cash_received_at"] = None
        matched = await _guarded_update(
            db,
            Obligation.id == obligation_id,
            Obligation.guardian_id == guardian_id,
            Obligation.status == SIGNED,
            values=values,
        )
    if matched == 0:
        raise ConflictError("Item changed while saving. Please try again.")
    await db.refresh(obligation)
    return obligation_to_response(obligation)


async def teacher_direct_upload(
    db: AsyncSession,
    teacher_id: UUID,
    event_id: UUID,
    class_id: UUID,
    student_id: UUID,
    form: bytes,
    payment_method: Optional[PaymentMethod] = None,
) -> ObligationResponse:
    """Teacher files a paper slip for a student, typically one with no parent linked.

    Keyed on (event, student): refused when any slip for that pair is already
    signed; otherwise a pending slip is taken over (or a new one created) as
    signed with the teacher as guardian_id.
    """
    check_form_blob(form, settings.max_signed_form_bytes)
    cls = await get_class_for_teacher_or_404(db, class_id, teacher_id)
    if not await is_enrolled(db, class_id, student_id):
        raise InvalidInputError("Student not in this class")
    event = await _get_event_or_404(db, event_id)
    if event.school_id != cls.school_id:
        raise NotFoundError("Event not found")
    if event.class_id is not None and event.class_id != class_id:
        raise InvalidInputError("Event class mismatch")

    resolved = payment_method or (PaymentMethod.CASH if is_payment_bearing(event) else None)

    result = await db.execute(
        select(Obligation)
        .where(Obligation.event_id == event_id, Obligation.student_id == student_id)
        .order_by(Obligation.created_at)
    )
    existing = result.scalars().all()
    if any(o.status == SIGNED for o in existing):
        raise ConflictError("Already has a submitted slip")

    values = {
        "status": SIGNED,
        "guardian_id": teacher_id,
        "signed_at": utcnow(),
        "submitted_form": form,
        "payment_method": resolved.value if resolved else None,
        "cash_received_at": None,
    }
    if existing:
        # Prefer the teacher's own earlier row so the unique triple is not duplicated.
        target = next((o for o in existing if o.guardian_id == teacher_id), existing[0])
        matched = await _guarded_update(
            db,
            Obligation.id == target.id,
            Obligation.status == PENDING,
            values=values,
        )
        if matched == 0:
            raise ConflictError("Already has a submitted slip")
        await db.refresh(target)
        obligation = target
    else:
        obligation = Obligation(event_id=event_id, class_id=class_id, student_id=student_id, **values)
        db.add(obligation)
        await db.commit()
        await db.refresh(obligation)
    logger.info("Teacher %s uploaded slip for student %s event %s", teacher_id, student_id, event_id)
    return obligation_to_response(obligation)


async def mark_cash_received(
    db: AsyncSession,
    teacher_id: UUID,
    obligation_id: UUID,
    received: bool,
) -> ObligationResponse:
    """Record (or clear) the teacher's receipt of a cash payment."""
    obligation = await _get_teacher_obligation_or_404(db, obligation_id, teacher_id)
    if obligation.status != SIGNED:
        raise ConflictError("Slip must be signed")
    teachers = await class_teacher_ids(db, obligation.class_id)
    if resolve_payment_method(obligation, teachers) != PaymentMethod.CASH:
        raise InvalidInputError("Only cash payments can be marked as received")

    matched = await _guarded_update(
        db,
        Obligation.id == obligation_id,
        Obligation.status == SIGNED,
        values={"cash_received_at": utcnow() if received else None},
    )
    if matched == 0:
        raise ConflictError("Slip must be signed")
    await db.refresh(obligation)
    return obligation_to_response(obligation)


async def mark_read(db: AsyncSession, guardian_id: UUID, obligation_id: UUID) -> None:
    """First open of an inbox item. Later calls keep the original timestamp."""
    await _get_guardian_obligation_or_404(db, obligation_id, guardian_id)
    await _guarded_update(
        db,
        Obligation.id == obligation_id,
        Obligation.guardian_id == guardian_id,
        Obligation.read_at.is_(None),
        values={"read_at": utcnow()},
    )


async def get_obligation_document(
    db: AsyncSession,
    caller: CurrentUser,
    obligation_id: UUID,
) -> Tuple[str, bytes]:
    """Submitted form when signed, else the event's blank form. Owner guardian or class teacher only."""
    obligation = await db.get(Obligation, obligation_id)
    if not obligation:
        raise NotFoundError("Permission slip not found")
    is_owner = obligation.guardian_id == caller.id
    if not is_owner and not await is_class_teacher(db, obligation.class_id, caller.id):
        raise NotFoundError("Permission slip not found")
    event = await _get_event_or_404(db, obligation.event_id)

    if obligation.status == SIGNED and obligation.submitted_form is not None:
        return download_filename("permission-slip", event.title), obligation.submitted_form
    if event.obligation_form is not None:
        return download_filename("permission-slip", event.title), event.obligation_form
    raise NotFoundError("Permission form not yet available. The teacher needs to upload a form.")
