"""Read helpers over the reference entities (classes, enrollment, guardian links).

These rows are owned by collaborator subsystems; everything here is a plain read.
"""

from typing import Dict, Iterable, List, Optional, Set
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from slipboard.auth.models import User
from slipboard.core.exceptions import NotFoundError
from slipboard.core.models import (
    SchoolClass,
    Student,
    class_guardians,
    class_students,
    class_teachers,
    student_guardians,
)


async def teacher_class_ids(db: AsyncSession, teacher_id: UUID) -> Set[UUID]:
    result = await db.execute(
        select(class_teachers.c.class_id).where(class_teachers.c.teacher_id == teacher_id)
    )
    return set(result.scalars().all())


async def teacher_school_ids(db: AsyncSession, teacher_id: UUID) -> Set[UUID]:
    result = await db.execute(
        select(SchoolClass.school_id)
        .join(class_teachers, class_teachers.c.class_id == SchoolClass.id)
        .where(class_teachers.c.teacher_id == teacher_id)
    )
    return set(result.scalars().all())


async def is_class_teacher(db: AsyncSession, class_id: UUID, teacher_id: UUID) -> bool:
    result = await db.execute(
        select(class_teachers.c.class_id).where(
            class_teachers.c.class_id == class_id,
            class_teachers.c.teacher_id == teacher_id,
        )
    )
    return result.first() is not None


async def get_class_for_teacher_or_404(db: AsyncSession, class_id: UUID, teacher_id: UUID) -> SchoolClass:
    """Class the teacher teaches. Missing and foreign classes look the same to the caller."""
    cls = await db.get(SchoolClass, class_id)
    if not cls or not await is_class_teacher(db, class_id, teacher_id):
        raise NotFoundError("Class not found")
    return cls


async def class_teacher_ids(db: AsyncSession, class_id: UUID) -> Set[UUID]:
    result = await db.execute(
        select(class_teachers.c.teacher_id).where(class_teachers.c.class_id == class_id)
    )
    return set(result.scalars().all())


async def class_student_ids(db: AsyncSession, class_id: UUID) -> List[UUID]:
    result = await db.execute(
        select(class_students.c.student_id).where(class_students.c.class_id == class_id)
    )
    return list(result.scalars().all())


async def is_enrolled(db: AsyncSession, class_id: UUID, student_id: UUID) -> bool:
    result = await db.execute(
        select(class_students.c.student_id).where(
            class_students.c.class_id == class_id,
            class_students.c.student_id == student_id,
        )
    )
    return result.first() is not None


async def has_joined_class(db: AsyncSession, class_id: UUID, guardian_id: UUID) -> bool:
    result = await db.execute(
        select(class_guardians.c.guardian_id).where(
            class_guardians.c.class_id == class_id,
            class_guardians.c.guardian_id == guardian_id,
        )
    )
    return result.first() is not None


async def guardian_class_ids(db: AsyncSession, guardian_id: UUID) -> List[UUID]:
    result = await db.execute(
        select(class_guardians.c.class_id).where(class_guardians.c.guardian_id == guardian_id)
    )
    return list(result.scalars().all())


async def is_guardian_of(db: AsyncSession, student_id: UUID, guardian_id: UUID) -> bool:
    result = await db.execute(
        select(student_guardians.c.student_id).where(
            student_guardians.c.student_id == student_id,
            student_guardians.c.guardian_id == guardian_id,
        )
    )
    return result.first() is not None


async def guardians_by_student(db: AsyncSession, student_ids: Iterable[UUID]) -> Dict[UUID, List[UUID]]:
    """Current guardian links for each student; students without guardians map to []."""
    ids = list(student_ids)
    links: Dict[UUID, List[UUID]] = {sid: [] for sid in ids}
    if not ids:
        return links
    result = await db.execute(
        select(student_guardians.c.student_id, student_guardians.c.guardian_id)
        .where(student_guardians.c.student_id.in_(ids))
        .order_by(student_guardians.c.student_id, student_guardians.c.guardian_id)
    )
    for student_id, guardian_id in result.all():
        links[student_id].append(guardian_id)
    return links


async def student_names(db: AsyncSession, student_ids: Iterable[UUID]) -> Dict[UUID, str]:
    ids = [sid for sid in set(student_ids) if sid is not None]
    if not ids:
        return {}
    result = await db.execute(select(Student.id, Student.name).where(Student.id.in_(ids)))
    return {sid: name for sid, name in result.all()}


async def user_display_names(db: AsyncSession, user_ids: Iterable[UUID]) -> Dict[UUID, str]:
    ids = [uid for uid in set(user_ids) if uid is not None]
    if not ids:
        return {}
    result = await db.execute(select(User.id, User.name, User.email).where(User.id.in_(ids)))
    return {uid: name or email or "Unknown" for uid, name, email in result.all()}


async def user_email(db: AsyncSession, user_id: UUID) -> Optional[str]:
    user = await db.get(User, user_id)
    return user.email if user else None
