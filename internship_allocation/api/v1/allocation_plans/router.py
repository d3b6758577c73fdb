from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from internship_allocation.api.dependencies import get_actor_id
from internship_allocation.core.enums import PlanStatus
from internship_allocation.core.exceptions import ServiceError
from internship_allocation.db.session import get_db

from .schemas import AllocationPlanCreate, AllocationPlanResponse, AllocationPlanStatusChange, AllocationPlanUpdate
from . import service

router = APIRouter(prefix="/api/v1/allocation-plans", tags=["allocation-plans"])


@router.post("", response_model=AllocationPlanResponse, status_code=status.HTTP_201_CREATED)
async def create_plan(
    payload: AllocationPlanCreate,
    db: AsyncSession = Depends(get_db),
    actor_id: Optional[UUID] = Depends(get_actor_id),
) -> AllocationPlanResponse:
    """Create allocation plan. Use is_current=true to make it the year's current plan."""
    try:
        return await service.create_plan(db, payload, performed_by=actor_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[AllocationPlanResponse])
async def list_plans(
    academic_year_id: UUID = Query(...),
    status_filter: Optional[PlanStatus] = Query(None, alias="status"),
    is_current: Optional[bool] = Query(None),
    db: AsyncSession = Depends(get_db),
) -> List[AllocationPlanResponse]:
    return await service.list_plans(db, academic_year_id, status_filter=status_filter, is_current=is_current)


@router.get("/current", response_model=AllocationPlanResponse)
async def get_current_plan(
    academic_year_id: UUID = Query(...),
    db: AsyncSession = Depends(get_db),
) -> AllocationPlanResponse:
    """Get the current allocation plan (is_current=true) of an academic year."""
    try:
        return await service.get_current_plan_for_year(db, academic_year_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{plan_id}", response_model=AllocationPlanResponse)
async def get_plan(
    plan_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> AllocationPlanResponse:
    plan = await service.get_plan(db, plan_id)
    if not plan:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Allocation plan not found")
    return plan


@router.put("/{plan_id}", response_model=AllocationPlanResponse)
async def update_plan(
    plan_id: UUID,
    payload: AllocationPlanUpdate,
    db: AsyncSession = Depends(get_db),
    actor_id: Optional[UUID] = Depends(get_actor_id),
) -> AllocationPlanResponse:
    """Update allocation plan. Rejected once the plan is ARCHIVED."""
    try:
        return await service.update_plan(db, plan_id, payload, performed_by=actor_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{plan_id}/status", response_model=AllocationPlanResponse)
async def change_plan_status(
    plan_id: UUID,
    payload: AllocationPlanStatusChange,
    db: AsyncSession = Depends(get_db),
    actor_id: Optional[UUID] = Depends(get_actor_id),
) -> AllocationPlanResponse:
    """Move the plan forward: DRAFT -> IN_REVIEW -> APPROVED -> ARCHIVED."""
    try:
        return await service.change_plan_status(
            db, plan_id, payload.status, performed_by=actor_id, reason=payload.reason
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{plan_id}/set-current", response_model=AllocationPlanResponse)
async def set_current_plan(
    plan_id: UUID,
    db: AsyncSession = Depends(get_db),
    actor_id: Optional[UUID] = Depends(get_actor_id),
) -> AllocationPlanResponse:
    """Set this plan as current. All other plans of the year become non-current."""
    try:
        return await service.set_current_plan(db, plan_id, performed_by=actor_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{plan_id}/archive", response_model=AllocationPlanResponse)
async def archive_plan(
    plan_id: UUID,
    db: AsyncSession = Depends(get_db),
    actor_id: Optional[UUID] = Depends(get_actor_id),
) -> AllocationPlanResponse:
    """Archive the plan. It becomes read-only and stops being current."""
    try:
        return await service.archive_plan(db, plan_id, performed_by=actor_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
