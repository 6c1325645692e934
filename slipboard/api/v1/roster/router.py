"""Roster router: guardian-student links managed by class teachers."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from slipboard.auth.rbac import require_teacher
from slipboard.auth.schemas import CurrentUser
from slipboard.core.exceptions import ServiceError
from slipboard.db.session import get_db

from .schemas import GuardianLinkRequest, GuardianLinkResponse, GuardianUnlinkResponse
from . import service

router = APIRouter(prefix="/api/v1/roster", tags=["roster"])


@router.post("/guardian-links", response_model=GuardianLinkResponse)
async def link_guardian(
    payload: GuardianLinkRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_teacher),
) -> GuardianLinkResponse:
    try:
        return await service.link_guardian_to_student(
            db, current_user.id, payload.class_id, payload.student_id, payload.guardian_id
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/guardian-links/remove", response_model=GuardianUnlinkResponse)
async def unlink_guardian(
    payload: GuardianLinkRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_teacher),
) -> GuardianUnlinkResponse:
    try:
        return await service.unlink_guardian_from_student(
            db, current_user.id, payload.class_id, payload.student_id, payload.guardian_id
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
