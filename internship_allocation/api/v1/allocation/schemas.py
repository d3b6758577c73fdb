from typing import List
from uuid import UUID

from pydantic import BaseModel


class DemandOutcome(BaseModel):
    """How far one demand was staffed. shortfall > 0 means under-staffed, which is reported, not raised."""

    demand_id: UUID
    internship_type_id: UUID
    subject_id: UUID
    school_type: str
    required_teachers: int
    already_assigned: int
    assignments_created: int
    shortfall: int


class AllocationResult(BaseModel):
    plan_id: UUID
    academic_year_id: UUID
    demands_processed: int
    assignments_created: int
    total_shortfall: int
    teachers_recalculated: int
    outcomes: List[DemandOutcome]
