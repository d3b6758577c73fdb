from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from internship_allocation.core.exceptions import ServiceError
from internship_allocation.db.session import get_db

from .schemas import AllocationPlanReport
from . import service

router = APIRouter(prefix="/api/v1/allocation-plans", tags=["allocation-reports"])


@router.get("/{plan_id}/report", response_model=AllocationPlanReport)
async def get_plan_report(
    plan_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> AllocationPlanReport:
    """Assignments, budget summary (PRIMARY / MIDDLE hours) and teacher utilization of one plan."""
    try:
        return await service.get_plan_report(db, plan_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
