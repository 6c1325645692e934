"""Classes and their membership lists. Model named SchoolClass to avoid Python 'class' keyword."""
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Table, Uuid

from slipboard.core.timeutil import utcnow
from slipboard.db.session import Base

# Teachers who teach the class
class_teachers = Table(
    "class_teachers",
    Base.metadata,
    Column("class_id", Uuid, ForeignKey("classes.id", ondelete="CASCADE"), primary_key=True),
    Column("teacher_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)

# Enrollment
class_students = Table(
    "class_students",
    Base.metadata,
    Column("class_id", Uuid, ForeignKey("classes.id", ondelete="CASCADE"), primary_key=True),
    Column("student_id", Uuid, ForeignKey("students.id", ondelete="CASCADE"), primary_key=True),
)

# Parents who joined the class with its code
class_guardians = Table(
    "class_guardians",
    Base.metadata,
    Column("class_id", Uuid, ForeignKey("classes.id", ondelete="CASCADE"), primary_key=True),
    Column("guardian_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class SchoolClass(Base):
    """Class within a school for one term. Join code is unique across classes."""

    __tablename__ = "classes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    school_id = Column(Uuid, ForeignKey("schools.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    term = Column(String(50), nullable=False)
    code = Column(String(12), nullable=True, unique=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
