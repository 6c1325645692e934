"""Calendar events, one-off or recurring, optionally carrying a form and/or a cost."""
import uuid

from sqlalchemy import JSON, Boolean, Column, Date, DateTime, ForeignKey, Index, LargeBinary, Numeric, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB

from slipboard.core.timeutil import utcnow
from slipboard.db.session import Base


class CalendarEvent(Base):
    """cost and cost_per_occurrence are exclusive: recurring events (2+ dates) only carry the latter."""

    __tablename__ = "calendar_events"
    __table_args__ = (
        Index("ix_calendar_events_class_start", "class_id", "start_at"),
        Index("ix_calendar_events_school_start", "school_id", "start_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    school_id = Column(Uuid, ForeignKey("schools.id"), nullable=False)
    class_id = Column(Uuid, ForeignKey("classes.id"), nullable=True)  # NULL = school-wide
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    start_at = Column(DateTime(timezone=True), nullable=False)
    end_at = Column(DateTime(timezone=True), nullable=False)
    visibility = Column(String(20), nullable=False)  # class | school | private
    requires_obligation_form = Column(Boolean, nullable=False, default=False)
    cost = Column(Numeric(10, 2), nullable=True)
    # Sorted YYYY-MM-DD strings; only stored when there are 2 or more
    occurrence_dates = Column(JSON().with_variant(JSONB, "postgresql"), nullable=True)
    cost_per_occurrence = Column(Numeric(10, 2), nullable=True)
    obligation_form = Column(LargeBinary, nullable=True)
    obligation_due_date = Column(Date, nullable=True)
    created_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
