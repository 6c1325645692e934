from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class CurrentUser(BaseModel):
    """Lightweight representation of the authenticated caller.
    email is used to match teacher-made interview bookings to a parent's account.
    """

    id: UUID
    role: str  # teacher | parent | admin
    email: Optional[str] = None
    name: Optional[str] = None
