from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel

from internship_allocation.core.enums import AssignmentStatus, PlanStatus


class ReportHeader(BaseModel):
    plan_id: UUID
    plan_name: str
    plan_version: str
    academic_year_id: UUID
    academic_year_name: str
    status: PlanStatus
    is_current: bool
    generated_at: datetime


class AssignmentDetail(BaseModel):
    """One assignment of the plan with teacher, school and catalog labels resolved."""

    assignment_id: UUID
    teacher_id: UUID
    teacher_name: str  # "Last, First"
    teacher_email: str
    school_name: str
    school_type: str
    zone_number: int
    internship_code: str
    subject_code: str
    student_group_size: int
    assignment_status: AssignmentStatus
    credit_hours: float  # 0 for cancelled assignments


class BudgetSummary(BaseModel):
    """Hours consumed by the plan's live assignments against the year's budget."""

    total_budget_hours: float
    used_hours: float
    remaining_hours: float
    elementary_hours_used: float
    middle_school_hours_used: float
    is_over_budget: bool


class TeacherUtilization(BaseModel):
    teacher_id: UUID
    teacher_name: str
    email: str
    school_name: str
    assignment_count: int
    notes: Optional[str] = None


class UtilizationAnalysis(BaseModel):
    """Active teachers grouped by their number of live assignments in the plan."""

    unassigned_teachers: List[TeacherUtilization]
    under_utilized_teachers: List[TeacherUtilization]
    fully_utilized_teachers: List[TeacherUtilization]
    over_utilized_teachers: List[TeacherUtilization]


class AllocationPlanReport(BaseModel):
    header: ReportHeader
    assignments: List[AssignmentDetail]
    budget_summary: BudgetSummary
    utilization_analysis: UtilizationAnalysis
