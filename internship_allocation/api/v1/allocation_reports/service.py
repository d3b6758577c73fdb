"""Read-only report for one allocation plan: assignment details, budget use and teacher utilization."""

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from internship_allocation.api.v1.allocation_plans.service import get_plan_or_404
from internship_allocation.api.v1.credit_hours.service import hours_per_assignment
from internship_allocation.core.enums import LIVE_ASSIGNMENT_STATUSES, EmploymentStatus, SchoolType
from internship_allocation.core.exceptions import NotFoundError
from internship_allocation.core.models import (
    AcademicYear,
    InternshipType,
    School,
    Subject,
    Teacher,
    TeacherAssignment,
)

from .schemas import (
    AllocationPlanReport,
    AssignmentDetail,
    BudgetSummary,
    ReportHeader,
    TeacherUtilization,
    UtilizationAnalysis,
)

logger = logging.getLogger(__name__)

# Live assignments per teacher that earn the supervision credit.
ASSIGNMENTS_PER_TEACHER_TARGET = 2


def _teacher_name(teacher: Teacher) -> str:
    return f"{teacher.last_name}, {teacher.first_name}"


def _utilization(teachers: Iterable[Tuple[Teacher, School]], counts: Dict[UUID, int]) -> UtilizationAnalysis:
    analysis = UtilizationAnalysis(
        unassigned_teachers=[],
        under_utilized_teachers=[],
        fully_utilized_teachers=[],
        over_utilized_teachers=[],
    )
    for teacher, school in teachers:
        count = counts.get(teacher.id, 0)
        entry = TeacherUtilization(
            teacher_id=teacher.id,
            teacher_name=_teacher_name(teacher),
            email=teacher.email,
            school_name=school.school_name,
            assignment_count=count,
        )
        if count == 0:
            entry.notes = "Unused resource"
            analysis.unassigned_teachers.append(entry)
        elif count < ASSIGNMENTS_PER_TEACHER_TARGET:
            entry.notes = f"Only {count} assignment(s); {ASSIGNMENTS_PER_TEACHER_TARGET} needed for credit"
            analysis.under_utilized_teachers.append(entry)
        elif count == ASSIGNMENTS_PER_TEACHER_TARGET:
            analysis.fully_utilized_teachers.append(entry)
        else:
            entry.notes = f"Overloaded ({count} assignments)"
            analysis.over_utilized_teachers.append(entry)
    return analysis


async def get_plan_report(db: AsyncSession, plan_id: UUID) -> AllocationPlanReport:
    """
    Build the report of a plan. Every assignment is listed; only PLANNED and CONFIRMED ones
    consume budget hours and count toward utilization. Utilization covers all ACTIVE teachers.
    """
    plan = await get_plan_or_404(db, plan_id)
    year = await db.get(AcademicYear, plan.academic_year_id)
    if year is None:
        raise NotFoundError("Academic year not found")

    result = await db.execute(
        select(TeacherAssignment, Teacher, School, InternshipType.internship_code, Subject.subject_code)
        .join(Teacher, Teacher.id == TeacherAssignment.teacher_id)
        .join(School, School.id == Teacher.school_id)
        .join(InternshipType, InternshipType.id == TeacherAssignment.internship_type_id)
        .join(Subject, Subject.id == TeacherAssignment.subject_id)
        .where(TeacherAssignment.plan_id == plan.id)
        .order_by(Teacher.last_name, Teacher.first_name, InternshipType.internship_code, Subject.subject_code)
    )

    details: List[AssignmentDetail] = []
    counts: Dict[UUID, int] = {}
    elementary_used = 0.0
    middle_used = 0.0
    for ta, teacher, school, internship_code, subject_code in result.all():
        hours = 0.0
        if ta.assignment_status in LIVE_ASSIGNMENT_STATUSES:
            hours = float(hours_per_assignment(school.school_type, year))
            counts[teacher.id] = counts.get(teacher.id, 0) + 1
            if school.school_type == SchoolType.PRIMARY.value:
                elementary_used += hours
            else:
                middle_used += hours
        details.append(
            AssignmentDetail(
                assignment_id=ta.id,
                teacher_id=teacher.id,
                teacher_name=_teacher_name(teacher),
                teacher_email=teacher.email,
                school_name=school.school_name,
                school_type=school.school_type,
                zone_number=school.zone_number,
                internship_code=internship_code,
                subject_code=subject_code,
                student_group_size=ta.student_group_size,
                assignment_status=ta.assignment_status,
                credit_hours=hours,
            )
        )

    total = float(year.total_credit_hours)
    used = elementary_used + middle_used
    budget = BudgetSummary(
        total_budget_hours=total,
        used_hours=used,
        remaining_hours=total - used,
        elementary_hours_used=elementary_used,
        middle_school_hours_used=middle_used,
        is_over_budget=used > total,
    )

    active = await db.execute(
        select(Teacher, School)
        .join(School, School.id == Teacher.school_id)
        .where(Teacher.employment_status == EmploymentStatus.ACTIVE.value)
        .order_by(Teacher.last_name, Teacher.first_name, Teacher.id)
    )

    logger.info("Report for plan %s: %d assignments, %.1f of %.1f hours used", plan_id, len(details), used, total)
    return AllocationPlanReport(
        header=ReportHeader(
            plan_id=plan.id,
            plan_name=plan.plan_name,
            plan_version=plan.plan_version,
            academic_year_id=year.id,
            academic_year_name=year.year_name,
            status=plan.status,
            is_current=plan.is_current,
            generated_at=datetime.utcnow(),
        ),
        assignments=details,
        budget_summary=budget,
        utilization_analysis=_utilization(active.all(), counts),
    )
