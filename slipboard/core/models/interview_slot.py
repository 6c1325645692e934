"""Bookable parent-teacher interview windows."""
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, UniqueConstraint, Uuid

from slipboard.core.timeutil import utcnow
from slipboard.db.session import Base


class InterviewSlot(Base):
    """Claimed when student_id is set together with guardian_id or a manual name/email.
    At most one slot per (class, student); NULL student_ids do not collide."""

    __tablename__ = "interview_slots"
    __table_args__ = (
        UniqueConstraint("class_id", "student_id", name="uq_interview_slot_class_student"),
        Index("ix_interview_slots_class_start", "class_id", "start_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    class_id = Column(Uuid, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False)
    start_at = Column(DateTime(timezone=True), nullable=False)
    end_at = Column(DateTime(timezone=True), nullable=False)
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="SET NULL"), nullable=True)
    guardian_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    manual_guardian_name = Column(String(255), nullable=True)
    manual_guardian_email = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
