"""Dashboard router: parent inbox and pending tasks, teacher event status."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from slipboard.auth.rbac import require_guardian, require_teacher
from slipboard.auth.schemas import CurrentUser
from slipboard.db.session import get_db

from .schemas import EventStatus, EventStatusRequest, InboxItem
from . import service

router = APIRouter(prefix="/api/v1/dashboard", tags=["dashboard"])


@router.get("/inbox", response_model=List[InboxItem])
async def parent_inbox(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_guardian),
) -> List[InboxItem]:
    return await service.get_parent_inbox(db, current_user.id)


@router.get("/pending", response_model=List[InboxItem])
async def pending_tasks(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_guardian),
) -> List[InboxItem]:
    return await service.get_pending_tasks(db, current_user.id)


@router.post("/event-status", response_model=List[EventStatus])
async def event_status(
    payload: EventStatusRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_teacher),
) -> List[EventStatus]:
    return await service.get_event_status(db, current_user.id, payload.event_ids)
