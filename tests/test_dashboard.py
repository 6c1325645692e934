from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from slipboard.api.v1.dashboard import service
from slipboard.api.v1.obligations.fanout import fan_out_event
from slipboard.api.v1.obligations.service import sign_obligation, teacher_direct_upload
from slipboard.core.enums import PaymentMethod

from factories import PDF, link, make_class, make_event, make_school, make_student, make_user, obligations_for


async def _setup(db: AsyncSession):
    teacher = await make_user(db, "teacher", "Ms Reed")
    school = await make_school(db)
    cls = await make_class(db, school, teacher)
    g1 = await make_user(db, "parent", "Gail One")
    g2 = await make_user(db, "parent", "Gus Two")
    s1 = await make_student(db, cls, "Avery")
    s2 = await make_student(db, cls, "Blake")
    s3 = await make_student(db, cls, "Casey")
    await link(db, s1, g1, cls)
    await link(db, s2, g2, cls)
    event = await make_event(db, cls, teacher, cost=Decimal("15"))
    await fan_out_event(db, event)
    return teacher, cls, g1, g2, s1, s2, s3, event


@pytest.mark.asyncio
async def test_event_status_buckets(db_session: AsyncSession) -> None:
    teacher, cls, g1, g2, s1, s2, s3, event = await _setup(db_session)
    slip = next(o for o in await obligations_for(db_session, event.id) if o.guardian_id == g1.id)
    await sign_obligation(db_session, g1.id, slip.id, PDF, PaymentMethod.ONLINE)

    [status] = await service.get_event_status(db_session, teacher.id, [event.id])

    by_name = {s.student_name: s for s in status.students}
    assert by_name["Avery"].status == "signed"
    assert by_name["Avery"].signed_by == "Gail One"
    assert by_name["Avery"].payment_method == PaymentMethod.ONLINE
    assert by_name["Blake"].status == "pending"
    assert by_name["Casey"].status == "no_parent"
    assert status.counts.total == 3
    assert status.counts.signed == 1
    # no_parent counts as pending
    assert status.counts.pending == 2
    assert status.effective_cost == Decimal("15")


@pytest.mark.asyncio
async def test_event_status_labels_teacher_uploads(db_session: AsyncSession) -> None:
    teacher, cls, g1, g2, s1, s2, s3, event = await _setup(db_session)
    await teacher_direct_upload(db_session, teacher.id, event.id, cls.id, s3.id, PDF)

    [status] = await service.get_event_status(db_session, teacher.id, [event.id])

    casey = next(s for s in status.students if s.student_id == s3.id)
    assert casey.status == "signed"
    assert casey.signed_by == "Teacher"
    assert casey.payment_method == PaymentMethod.CASH
    assert casey.cash_received is False


@pytest.mark.asyncio
async def test_event_status_hides_foreign_events(db_session: AsyncSession) -> None:
    teacher, cls, g1, g2, s1, s2, s3, event = await _setup(db_session)
    other = await make_user(db_session, "teacher", "Mr Other")

    assert await service.get_event_status(db_session, other.id, [event.id]) == []


@pytest.mark.asyncio
async def test_parent_inbox_and_pending_tasks(db_session: AsyncSession) -> None:
    teacher, cls, g1, g2, s1, s2, s3, event = await _setup(db_session)
    later = await make_event(db_session, cls, teacher, title="Bake sale", requires_obligation_form=False, cost=Decimal("3"))
    await fan_out_event(db_session, later)
    first = next(o for o in await obligations_for(db_session, event.id) if o.guardian_id == g1.id)
    await sign_obligation(db_session, g1.id, first.id, PDF, PaymentMethod.CASH)

    inbox = await service.get_parent_inbox(db_session, g1.id)
    pending = await service.get_pending_tasks(db_session, g1.id)

    assert {item.event_title for item in inbox} == {"Zoo trip", "Bake sale"}
    assert inbox[0].event_title == "Bake sale"
    statuses = {item.event_title: item.status for item in inbox}
    assert statuses == {"Zoo trip": "completed", "Bake sale": "unread"}
    assert [item.event_title for item in pending] == ["Bake sale"]
    assert all(item.student_name == "Avery" for item in inbox)
    assert all(item.class_name == cls.name for item in inbox)
