from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from internship_allocation.core.enums import PlanStatus


class AllocationPlanCreate(BaseModel):
    """Create allocation plan. plan_version must be unique within the academic year."""

    academic_year_id: UUID
    plan_name: str = Field(..., min_length=1, max_length=255)
    plan_version: str = Field(..., min_length=1, max_length=100, description="e.g. 1.0, 2025-draft-2")
    status: PlanStatus = PlanStatus.DRAFT
    is_current: bool = Field(
        False,
        description="Make this the current plan of the year? If true, every other plan of the year stops being current.",
    )
    notes: Optional[str] = None


class AllocationPlanUpdate(BaseModel):
    """Update allocation plan. Not allowed once the plan is ARCHIVED."""

    plan_name: Optional[str] = Field(None, min_length=1, max_length=255)
    status: Optional[PlanStatus] = None
    is_current: Optional[bool] = None
    notes: Optional[str] = None


class AllocationPlanStatusChange(BaseModel):
    status: PlanStatus
    reason: Optional[str] = None


class AllocationPlanResponse(BaseModel):
    id: UUID
    academic_year_id: UUID
    plan_name: str
    plan_version: str
    status: PlanStatus
    is_current: bool
    notes: Optional[str] = None
    created_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
