from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from slipboard.api.v1.events import service
from slipboard.api.v1.events.schemas import EventCreate, EventUpdate
from slipboard.auth.schemas import CurrentUser
from slipboard.core.exceptions import InvalidInputError, NotFoundError

from factories import PDF, link, make_class, make_school, make_student, make_user, obligations_for

START = datetime(2026, 11, 20, 9, 0, tzinfo=timezone.utc)


async def _setup(db: AsyncSession):
    teacher = await make_user(db, "teacher", "Ms Reed")
    school = await make_school(db)
    cls = await make_class(db, school, teacher)
    guardian = await make_user(db, "parent", "Gail One")
    student = await make_student(db, cls, "Sam One")
    await link(db, student, guardian, cls)
    return teacher, school, cls, guardian


def _payload(school, cls, **kwargs) -> EventCreate:
    data = dict(
        school_id=school.id,
        class_id=cls.id,
        title="  Swimming lessons  ",
        start_at=START.isoformat(),
        end_at=(START + timedelta(hours=1)).isoformat(),
        visibility="class",
    )
    data.update(kwargs)
    return EventCreate(**data)


@pytest.mark.asyncio
async def test_create_recurring_event_keeps_only_per_occurrence_cost(db_session: AsyncSession) -> None:
    teacher, school, cls, _ = await _setup(db_session)
    payload = _payload(
        school, cls,
        cost=Decimal("30"),
        cost_per_occurrence=Decimal("5"),
        occurrence_dates=["2026-11-27", "2026-11-20", "not-a-date", "2026-11-20"],
    )

    created = await service.create_event(db_session, teacher.id, payload)
    event = await service.get_event(db_session, teacher.id, created.event_id)

    assert event.title == "Swimming lessons"
    assert event.occurrence_dates == ["2026-11-20", "2026-11-27"]
    assert event.cost is None
    assert event.cost_per_occurrence == Decimal("5")
    assert event.effective_cost == Decimal("10")
    assert created.fan_out.created == 1


@pytest.mark.asyncio
async def test_create_event_validation(db_session: AsyncSession) -> None:
    teacher, school, cls, _ = await _setup(db_session)

    with pytest.raises(InvalidInputError):
        await service.create_event(db_session, teacher.id, _payload(school, cls, title="   "))
    with pytest.raises(InvalidInputError):
        await service.create_event(db_session, teacher.id, _payload(school, cls, title="x" * 201))
    with pytest.raises(InvalidInputError):
        await service.create_event(db_session, teacher.id, _payload(school, cls, end_at=START.isoformat()))
    with pytest.raises(InvalidInputError):
        await service.create_event(db_session, teacher.id, _payload(school, cls, start_at="tomorrow"))
    with pytest.raises(InvalidInputError):
        await service.create_event(db_session, teacher.id, _payload(school, cls, visibility="private"))
    with pytest.raises(InvalidInputError):
        await service.create_event(db_session, teacher.id, _payload(school, cls, class_id=None, visibility="class"))


@pytest.mark.asyncio
async def test_create_event_in_foreign_class_is_not_found(db_session: AsyncSession) -> None:
    teacher, school, cls, _ = await _setup(db_session)
    other = await make_user(db_session, "teacher", "Mr Other")
    await make_class(db_session, school, other, name="Year 5")

    with pytest.raises(NotFoundError):
        await service.create_event(db_session, other.id, _payload(school, cls))


@pytest.mark.asyncio
async def test_update_to_one_off_clears_per_occurrence_cost(db_session: AsyncSession) -> None:
    teacher, school, cls, _ = await _setup(db_session)
    created = await service.create_event(
        db_session, teacher.id,
        _payload(school, cls, cost_per_occurrence=Decimal("5"), occurrence_dates=["2026-11-20", "2026-11-27"]),
    )

    updated = await service.update_event(
        db_session, teacher.id, created.event_id,
        EventUpdate(occurrence_dates=None, cost=Decimal("12")),
    )

    assert updated.occurrence_dates is None
    assert updated.cost_per_occurrence is None
    assert updated.cost == Decimal("12")
    assert updated.effective_cost == Decimal("12")


@pytest.mark.asyncio
async def test_update_to_recurring_clears_cost(db_session: AsyncSession) -> None:
    teacher, school, cls, _ = await _setup(db_session)
    created = await service.create_event(db_session, teacher.id, _payload(school, cls, cost=Decimal("20")))

    updated = await service.update_event(
        db_session, teacher.id, created.event_id,
        EventUpdate(occurrence_dates=["2026-11-20", "2026-11-27", "2026-12-04"], cost_per_occurrence=Decimal("3")),
    )

    assert updated.cost is None
    assert updated.effective_cost == Decimal("9")


@pytest.mark.asyncio
async def test_update_rejects_end_before_start_and_leaves_event_unchanged(db_session: AsyncSession) -> None:
    teacher, school, cls, _ = await _setup(db_session)
    created = await service.create_event(db_session, teacher.id, _payload(school, cls))

    with pytest.raises(InvalidInputError):
        await service.update_event(
            db_session, teacher.id, created.event_id,
            EventUpdate(title="Renamed", end_at=(START - timedelta(hours=1)).isoformat()),
        )
    event = await service.get_event(db_session, teacher.id, created.event_id)
    assert event.title == "Swimming lessons"


@pytest.mark.asyncio
async def test_delete_event_removes_its_slips(db_session: AsyncSession) -> None:
    teacher, school, cls, _ = await _setup(db_session)
    created = await service.create_event(
        db_session, teacher.id, _payload(school, cls, requires_obligation_form=True)
    )
    assert len(await obligations_for(db_session, created.event_id)) == 1

    await service.delete_event(db_session, teacher.id, created.event_id)

    assert await obligations_for(db_session, created.event_id) == []
    with pytest.raises(NotFoundError):
        await service.get_event(db_session, teacher.id, created.event_id)


@pytest.mark.asyncio
async def test_form_upload_and_download(db_session: AsyncSession) -> None:
    teacher, school, cls, guardian = await _setup(db_session)
    outsider = await make_user(db_session, "parent", "Not Joined")
    created = await service.create_event(
        db_session, teacher.id, _payload(school, cls, requires_obligation_form=True)
    )
    free = await service.create_event(db_session, teacher.id, _payload(school, cls, title="Assembly"))

    with pytest.raises(InvalidInputError):
        await service.upload_obligation_form(db_session, teacher.id, free.event_id, PDF)
    with pytest.raises(InvalidInputError):
        await service.upload_obligation_form(db_session, teacher.id, created.event_id, b"")

    await service.upload_obligation_form(db_session, teacher.id, created.event_id, PDF)

    parent = CurrentUser(id=guardian.id, role="parent")
    filename, data = await service.get_event_form(db_session, parent, created.event_id)
    assert data == PDF
    assert filename == "permission-form-swimming-lessons.pdf"
    with pytest.raises(NotFoundError):
        await service.get_event_form(db_session, CurrentUser(id=outsider.id, role="parent"), created.event_id)
