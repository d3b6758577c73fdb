from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from internship_allocation.core.exceptions import ServiceError
from internship_allocation.db.session import get_db

from .schemas import CreditHourTrackingResponse, CreditHourTrackingUpdate
from . import service

router = APIRouter(prefix="/api/v1/credit-hours", tags=["credit-hours"])


@router.get("", response_model=List[CreditHourTrackingResponse])
async def list_credit_hours(
    academic_year_id: UUID = Query(..., description="Academic year to list"),
    teacher_id: Optional[UUID] = Query(None),
    min_balance: Optional[float] = Query(None),
    max_balance: Optional[float] = Query(None),
    min_hours: Optional[float] = Query(None),
    max_hours: Optional[float] = Query(None),
    db: AsyncSession = Depends(get_db),
) -> List[CreditHourTrackingResponse]:
    """List ledger rows of a year, most over-allocated first."""
    return await service.list_credit_hours(
        db,
        academic_year_id,
        teacher_id=teacher_id,
        min_balance=min_balance,
        max_balance=max_balance,
        min_hours=min_hours,
        max_hours=max_hours,
    )


@router.get("/teachers/{teacher_id}/years/{academic_year_id}", response_model=CreditHourTrackingResponse)
async def get_credit_hours(
    teacher_id: UUID,
    academic_year_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> CreditHourTrackingResponse:
    row = await service.get_credit_hours(db, teacher_id, academic_year_id)
    if not row:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Credit hour tracking not found")
    return row


@router.post(
    "/teachers/{teacher_id}/years/{academic_year_id}/recalculate",
    response_model=CreditHourTrackingResponse,
)
async def recalculate_credit_hours(
    teacher_id: UUID,
    academic_year_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> CreditHourTrackingResponse:
    """Recompute one teacher's credit hours from their live assignments."""
    try:
        return await service.recalculate_for_teacher_and_year(db, teacher_id, academic_year_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/years/{academic_year_id}/recalculate", response_model=List[CreditHourTrackingResponse])
async def recalculate_year(
    academic_year_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> List[CreditHourTrackingResponse]:
    try:
        return await service.recalculate_for_year(db, academic_year_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{tracking_id}", response_model=CreditHourTrackingResponse)
async def update_credit_hour_notes(
    tracking_id: UUID,
    payload: CreditHourTrackingUpdate,
    db: AsyncSession = Depends(get_db),
) -> CreditHourTrackingResponse:
    try:
        return await service.update_credit_hour_notes(db, tracking_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
