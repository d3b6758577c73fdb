from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from internship_allocation.api.dependencies import get_actor_id
from internship_allocation.core.exceptions import ServiceError
from internship_allocation.db.session import get_db

from .schemas import AllocationResult
from . import service

router = APIRouter(prefix="/api/v1/allocation-plans", tags=["allocation"])


@router.post("/{plan_id}/allocate", response_model=AllocationResult)
async def allocate(
    plan_id: UUID,
    db: AsyncSession = Depends(get_db),
    actor_id: Optional[UUID] = Depends(get_actor_id),
) -> AllocationResult:
    """Run the matching engine for the plan's academic year. Unmet demand is reported, not raised."""
    try:
        return await service.allocate(db, plan_id, performed_by=actor_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
