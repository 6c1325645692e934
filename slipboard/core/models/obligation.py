"""Per-(event, student, guardian) permission slip."""
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Index, LargeBinary, String, UniqueConstraint, Uuid

from slipboard.core.timeutil import utcnow
from slipboard.db.session import Base


class Obligation(Base):
    """One slip per (event, student, guardian). guardian_id may be a teacher id for
    teacher-submitted slips on behalf of a student with no linked parent."""

    __tablename__ = "obligations"
    __table_args__ = (
        UniqueConstraint("event_id", "student_id", "guardian_id", name="uq_obligation_event_student_guardian"),
        Index("ix_obligations_guardian_status", "guardian_id", "status"),
        Index("ix_obligations_event", "event_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id = Column(Uuid, ForeignKey("calendar_events.id", ondelete="CASCADE"), nullable=False)
    class_id = Column(Uuid, ForeignKey("classes.id"), nullable=False)
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=True)  # NULL on legacy rows
    guardian_id = Column(Uuid, nullable=False)
    status = Column(String(20), nullable=False, default="pending")  # pending | signed
    signed_at = Column(DateTime(timezone=True), nullable=True)
    submitted_form = Column(LargeBinary, nullable=True)
    payment_method = Column(String(20), nullable=True)  # online | cash
    cash_received_at = Column(DateTime(timezone=True), nullable=True)
    read_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
