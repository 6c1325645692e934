"""Events router: create/update/delete calendar events, blank form upload and download."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from slipboard.auth.dependencies import get_current_user
from slipboard.auth.rbac import require_teacher
from slipboard.auth.schemas import CurrentUser
from slipboard.core.exceptions import ServiceError
from slipboard.db.session import get_db

from .schemas import EventCreate, EventCreateResponse, EventResponse, EventUpdate, ObligationFormUpload
from . import service

router = APIRouter(prefix="/api/v1/events", tags=["events"])


@router.post("", response_model=EventCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    payload: EventCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_teacher),
) -> EventCreateResponse:
    try:
        return await service.create_event(db, current_user.id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_teacher),
) -> EventResponse:
    try:
        return await service.get_event(db, current_user.id, event_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: UUID,
    payload: EventUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_teacher),
) -> EventResponse:
    try:
        return await service.update_event(db, current_user.id, event_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_teacher),
) -> None:
    try:
        await service.delete_event(db, current_user.id, event_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/{event_id}/form", status_code=status.HTTP_204_NO_CONTENT)
async def upload_obligation_form(
    event_id: UUID,
    payload: ObligationFormUpload,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_teacher),
) -> None:
    try:
        await service.upload_obligation_form(db, current_user.id, event_id, payload.form_pdf)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{event_id}/form")
async def download_obligation_form(
    event_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> Response:
    try:
        filename, data = await service.get_event_form(db, current_user, event_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return Response(
        content=data,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
