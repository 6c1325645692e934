"""Obligations router: parent sign/unsign/payment, teacher upload and cash receipt, document download."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from slipboard.auth.dependencies import get_current_user
from slipboard.auth.rbac import require_guardian, require_teacher
from slipboard.auth.schemas import CurrentUser
from slipboard.core.exceptions import ServiceError
from slipboard.db.session import get_db

from .schemas import (
    CashReceivedRequest,
    DeclarePaymentRequest,
    ObligationResponse,
    SignObligationRequest,
    TeacherUploadRequest,
)
from . import service

router = APIRouter(prefix="/api/v1/obligations", tags=["obligations"])


# --- Parent ---
@router.post("/{obligation_id}/sign", response_model=ObligationResponse)
async def sign_obligation(
    obligation_id: UUID,
    payload: SignObligationRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_guardian),
) -> ObligationResponse:
    try:
        return await service.sign_obligation(
            db,
            current_user.id,
            obligation_id,
            form=payload.form_pdf,
            payment_method=payload.payment_method,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{obligation_id}/unsign", response_model=ObligationResponse)
async def unsign_obligation(
    obligation_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_guardian),
) -> ObligationResponse:
    try:
        return await service.unsign_obligation(db, current_user.id, obligation_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{obligation_id}/payment", response_model=ObligationResponse)
async def declare_payment(
    obligation_id: UUID,
    payload: DeclarePaymentRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_guardian),
) -> ObligationResponse:
    try:
        return await service.declare_payment_only(db, current_user.id, obligation_id, payload.payment_method)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{obligation_id}/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_read(
    obligation_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_guardian),
) -> None:
    try:
        await service.mark_read(db, current_user.id, obligation_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


# --- Teacher ---
@router.post("/teacher-upload", response_model=ObligationResponse, status_code=status.HTTP_201_CREATED)
async def teacher_upload(
    payload: TeacherUploadRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_teacher),
) -> ObligationResponse:
    try:
        return await service.teacher_direct_upload(
            db,
            current_user.id,
            payload.event_id,
            payload.class_id,
            payload.student_id,
            payload.form_pdf,
            payload.payment_method,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/{obligation_id}/cash-received", response_model=ObligationResponse)
async def mark_cash_received(
    obligation_id: UUID,
    payload: CashReceivedRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_teacher),
) -> ObligationResponse:
    try:
        return await service.mark_cash_received(db, current_user.id, obligation_id, payload.received)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


# --- Download ---
@router.get("/{obligation_id}/document")
async def download_document(
    obligation_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> Response:
    try:
        filename, data = await service.get_obligation_document(db, current_user, obligation_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return Response(
        content=data,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
