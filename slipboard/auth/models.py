import uuid

from sqlalchemy import Column, DateTime, String, Uuid

from slipboard.core.timeutil import utcnow
from slipboard.db.session import Base


class User(Base):
    """Account holder: teacher, parent (guardian) or admin. Identity comes from the auth provider."""

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    # teacher | parent | admin
    role = Column(String(20), nullable=False)
    name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
