"""Calendar event service: create (with slip fan-out), update, delete (with slip cascade), form upload."""

import logging
from typing import Any, Dict, Optional, Tuple
from uuid import UUID

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from slipboard.api.v1.obligations.fanout import fan_out_event
from slipboard.auth.schemas import CurrentUser
from slipboard.core.blobs import check_form_blob, download_filename
from slipboard.core.config import settings
from slipboard.core.enums import EventVisibility, UserRole
from slipboard.core.exceptions import InvalidInputError, NotFoundError
from slipboard.core.models import CalendarEvent, Obligation
from slipboard.core.roster import has_joined_class, is_class_teacher, teacher_class_ids, teacher_school_ids
from slipboard.core.timeutil import as_utc, parse_calendar_date, parse_instant

from .cost import effective_cost, normalize_cost_fields
from .schemas import EventCreate, EventCreateResponse, EventResponse, EventUpdate

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 200


def _clean_title(raw: Optional[str]) -> str:
    title = (raw or "").strip()
    if not title:
        raise InvalidInputError("Title is required")
    if len(title) > MAX_TITLE_LENGTH:
        raise InvalidInputError("Title is too long")
    return title


def _parse_required_instant(raw: Optional[str], label: str):
    if not raw:
        raise InvalidInputError(f"{label} is required")
    parsed = parse_instant(raw)
    if parsed is None:
        raise InvalidInputError(f"Invalid {label.lower()}")
    return parsed


def event_to_response(event: CalendarEvent) -> EventResponse:
    return EventResponse(
        id=event.id,
        school_id=event.school_id,
        class_id=event.class_id,
        title=event.title,
        description=event.description,
        start_at=event.start_at,
        end_at=event.end_at,
        visibility=event.visibility,
        requires_obligation_form=bool(event.requires_obligation_form),
        cost=event.cost,
        cost_per_occurrence=event.cost_per_occurrence,
        occurrence_dates=event.occurrence_dates,
        effective_cost=effective_cost(event),
        obligation_due_date=event.obligation_due_date,
        has_obligation_form=event.obligation_form is not None,
        created_at=event.created_at,
    )


async def _get_event_for_teacher_or_404(db: AsyncSession, event_id: UUID, teacher_id: UUID) -> CalendarEvent:
    event = await db.get(CalendarEvent, event_id)
    if not event:
        raise NotFoundError("Event not found")
    if event.school_id not in await teacher_school_ids(db, teacher_id):
        raise NotFoundError("Event not found")
    if event.class_id is not None and not await is_class_teacher(db, event.class_id, teacher_id):
        raise NotFoundError("Event not found")
    return event


async def create_event(
    db: AsyncSession,
    teacher_id: UUID,
    payload: EventCreate,
) -> EventCreateResponse:
    title = _clean_title(payload.title)
    start_at = _parse_required_instant(payload.start_at, "Start date")
    end_at = _parse_required_instant(payload.end_at, "End date")
    if end_at <= start_at:
        raise InvalidInputError("End time must be after start time")
    try:
        visibility = EventVisibility(payload.visibility)
    except ValueError:
        raise InvalidInputError("Invalid visibility")

    if payload.school_id not in await teacher_school_ids(db, teacher_id):
        raise NotFoundError("School not found")
    if payload.class_id is not None:
        if payload.class_id not in await teacher_class_ids(db, teacher_id):
            raise NotFoundError("Class not found")
        if visibility not in (EventVisibility.CLASS, EventVisibility.SCHOOL):
            raise InvalidInputError("Class events must be class or school visibility")
    elif visibility != EventVisibility.SCHOOL:
        raise InvalidInputError("School-wide events need school visibility")

    occurrence_dates, cost, cost_per_occurrence = normalize_cost_fields(
        payload.occurrence_dates, payload.cost, payload.cost_per_occurrence
    )

    event = CalendarEvent(
        school_id=payload.school_id,
        class_id=payload.class_id,
        title=title,
        description=(payload.description or "").strip() or None,
        start_at=start_at,
        end_at=end_at,
        visibility=visibility.value,
        requires_obligation_form=payload.requires_obligation_form,
        cost=cost,
        occurrence_dates=occurrence_dates,
        cost_per_occurrence=cost_per_occurrence,
        obligation_due_date=parse_calendar_date(payload.obligation_due_date),
        created_by=teacher_id,
    )
    db.add(event)
    await db.commit()
    await db.refresh(event)
    event_id = event.id
    logger.info("Event %s created by %s", event_id, teacher_id)

    report = await fan_out_event(db, event)
    return EventCreateResponse(event_id=event_id, fan_out=report)


async def update_event(
    db: AsyncSession,
    teacher_id: UUID,
    event_id: UUID,
    payload: EventUpdate,
) -> EventResponse:
    """Apply a partial update. Everything is validated before any field is touched."""
    event = await _get_event_for_teacher_or_404(db, event_id, teacher_id)
    fields = payload.model_fields_set
    changes: Dict[str, Any] = {}

    if "title" in fields:
        changes["title"] = _clean_title(payload.title)
    if "description" in fields:
        changes["description"] = (payload.description or "").strip() or None
    if "start_at" in fields:
        changes["start_at"] = _parse_required_instant(payload.start_at, "Start date")
    if "end_at" in fields:
        changes["end_at"] = _parse_required_instant(payload.end_at, "End date")
    if "start_at" in changes or "end_at" in changes:
        start_at = as_utc(changes.get("start_at", event.start_at))
        end_at = as_utc(changes.get("end_at", event.end_at))
        if end_at <= start_at:
            raise InvalidInputError("End time must be after start time")
    if "requires_obligation_form" in fields:
        changes["requires_obligation_form"] = bool(payload.requires_obligation_form)
    if "obligation_due_date" in fields:
        changes["obligation_due_date"] = parse_calendar_date(payload.obligation_due_date)

    # Cost fields are resolved together so a recurrence change never leaves both set.
    if {"cost", "cost_per_occurrence", "occurrence_dates"} & fields:
        dates = payload.occurrence_dates if "occurrence_dates" in fields else event.occurrence_dates
        cost = payload.cost if "cost" in fields else event.cost
        per_occurrence = (
            payload.cost_per_occurrence if "cost_per_occurrence" in fields else event.cost_per_occurrence
        )
        (
            changes["occurrence_dates"],
            changes["cost"],
            changes["cost_per_occurrence"],
        ) = normalize_cost_fields(dates, cost, per_occurrence)

    if not changes:
        return event_to_response(event)

    for key, value in changes.items():
        setattr(event, key, value)
    await db.commit()
    await db.refresh(event)
    return event_to_response(event)


async def delete_event(db: AsyncSession, teacher_id: UUID, event_id: UUID) -> None:
    """Delete the event and every slip attached to it."""
    event = await _get_event_for_teacher_or_404(db, event_id, teacher_id)
    removed = await db.execute(delete(Obligation).where(Obligation.event_id == event_id))
    await db.delete(event)
    await db.commit()
    logger.info("Event %s deleted by %s (%d slips removed)", event_id, teacher_id, removed.rowcount)


async def upload_obligation_form(
    db: AsyncSession,
    teacher_id: UUID,
    event_id: UUID,
    form: bytes,
) -> None:
    """Attach the blank form parents download and sign."""
    check_form_blob(form, settings.max_event_form_bytes)
    event = await _get_event_for_teacher_or_404(db, event_id, teacher_id)
    if not event.requires_obligation_form:
        raise InvalidInputError("Event does not require permission slips")
    if event.class_id is None:
        raise InvalidInputError("Event has no class")
    event.obligation_form = form
    await db.commit()


async def get_event(db: AsyncSession, teacher_id: UUID, event_id: UUID) -> EventResponse:
    event = await _get_event_for_teacher_or_404(db, event_id, teacher_id)
    return event_to_response(event)


async def get_event_form(db: AsyncSession, caller: CurrentUser, event_id: UUID) -> Tuple[str, bytes]:
    """Blank form for an event; visible to teachers of the class and parents who joined it."""
    event = await db.get(CalendarEvent, event_id)
    if not event or event.class_id is None:
        raise NotFoundError("Event not found")
    if caller.role == UserRole.PARENT.value:
        allowed = await has_joined_class(db, event.class_id, caller.id)
    else:
        allowed = await is_class_teacher(db, event.class_id, caller.id)
    if not allowed:
        raise NotFoundError("Event not found")
    if event.obligation_form is None:
        raise NotFoundError("Permission form not yet available")
    return download_filename("permission-form", event.title), event.obligation_form
