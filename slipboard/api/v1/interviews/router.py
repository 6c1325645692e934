"""Interviews router: slot management for teachers, claim/unclaim for parents."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from slipboard.auth.rbac import require_guardian, require_teacher
from slipboard.auth.schemas import CurrentUser
from slipboard.core.exceptions import ServiceError
from slipboard.db.session import get_db

from .schemas import (
    ClaimSlotRequest,
    DeleteAllSlotsResponse,
    GuardianInterviewData,
    ManualBookingRequest,
    SlotResponse,
    SlotsCreate,
    SlotsCreateResponse,
)
from . import service

router = APIRouter(prefix="/api/v1/interviews", tags=["interviews"])


# --- Teacher ---
@router.post("/slots", response_model=SlotsCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_slots(
    payload: SlotsCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_teacher),
) -> SlotsCreateResponse:
    try:
        count = await service.create_slots(db, current_user.id, payload.class_id, payload.windows)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return SlotsCreateResponse(count=count)


@router.get("/slots", response_model=List[SlotResponse])
async def list_my_slots(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_teacher),
) -> List[SlotResponse]:
    return await service.list_slots_for_teacher(db, current_user.id)


@router.get("/classes/{class_id}/slots", response_model=List[SlotResponse])
async def list_class_slots(
    class_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_teacher),
) -> List[SlotResponse]:
    try:
        return await service.list_slots_for_class(db, current_user.id, class_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/classes/{class_id}/slots", response_model=DeleteAllSlotsResponse)
async def delete_all_slots(
    class_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_teacher),
) -> DeleteAllSlotsResponse:
    try:
        deleted = await service.delete_all_slots(db, current_user.id, class_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return DeleteAllSlotsResponse(deleted=deleted)


@router.post("/slots/{slot_id}/book", response_model=SlotResponse)
async def book_manually(
    slot_id: UUID,
    payload: ManualBookingRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_teacher),
) -> SlotResponse:
    try:
        return await service.book_manually(
            db,
            current_user.id,
            slot_id,
            payload.student_id,
            payload.guardian_name,
            payload.guardian_email,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/slots/{slot_id}/unbook", response_model=SlotResponse)
async def unbook_slot(
    slot_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_teacher),
) -> SlotResponse:
    try:
        return await service.unbook_slot(db, current_user.id, slot_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/slots/{slot_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_slot(
    slot_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_teacher),
) -> None:
    try:
        await service.delete_slot(db, current_user.id, slot_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


# --- Parent ---
@router.get("/mine", response_model=GuardianInterviewData)
async def my_interviews(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_guardian),
) -> GuardianInterviewData:
    return await service.interview_data_for_guardian(db, current_user.id)


@router.post("/slots/{slot_id}/claim", response_model=SlotResponse)
async def claim_slot(
    slot_id: UUID,
    payload: ClaimSlotRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_guardian),
) -> SlotResponse:
    try:
        return await service.claim_slot(db, current_user.id, slot_id, payload.student_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/slots/{slot_id}/unclaim", response_model=SlotResponse)
async def unclaim_slot(
    slot_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_guardian),
) -> SlotResponse:
    try:
        return await service.unclaim_slot(db, current_user.id, slot_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
