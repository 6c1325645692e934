import uuid

from sqlalchemy import Column, DateTime, String, Uuid

from slipboard.core.timeutil import utcnow
from slipboard.db.session import Base


class School(Base):
    __tablename__ = "schools"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
