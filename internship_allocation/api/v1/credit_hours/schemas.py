from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class CreditHourTrackingResponse(BaseModel):
    id: UUID
    teacher_id: UUID
    academic_year_id: UUID
    assignments_count: int
    credit_hours_allocated: float
    credit_balance: float
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CreditHourTrackingUpdate(BaseModel):
    """Only notes are editable; the figures are always recomputed from assignments."""

    notes: Optional[str] = Field(None, max_length=1000)
