import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Table, Uuid

from slipboard.core.timeutil import utcnow
from slipboard.db.session import Base

# Guardian links (many-to-many). Obligations fan out along these rows.
student_guardians = Table(
    "student_guardians",
    Base.metadata,
    Column("student_id", Uuid, ForeignKey("students.id", ondelete="CASCADE"), primary_key=True),
    Column("guardian_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True),
)


class Student(Base):
    __tablename__ = "students"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    school_id = Column(Uuid, ForeignKey("schools.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    grade = Column(String(20), nullable=False, default="")
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
