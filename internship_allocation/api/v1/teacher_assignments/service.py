import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from internship_allocation.api.v1.allocation_plans.service import ensure_not_archived, get_plan_or_404
from internship_allocation.api.v1.credit_hours.service import recalculate_teachers
from internship_allocation.api.v1.plan_change_logs.service import ENTITY_TEACHER_ASSIGNMENT, log_plan_change
from internship_allocation.core.enums import AssignmentStatus, ChangeType, EmploymentStatus
from internship_allocation.core.exceptions import (
    DuplicateError,
    IllegalStateError,
    NotFoundError,
    ValidationError,
)
from internship_allocation.core.models import (
    AcademicYear,
    AllocationPlan,
    InternshipType,
    Subject,
    Teacher,
    TeacherAssignment,
)

from .schemas import TeacherAssignmentCreate, TeacherAssignmentResponse, TeacherAssignmentUpdate

logger = logging.getLogger(__name__)


def _to_response(ta: TeacherAssignment) -> TeacherAssignmentResponse:
    return TeacherAssignmentResponse(
        id=ta.id,
        plan_id=ta.plan_id,
        teacher_id=ta.teacher_id,
        internship_type_id=ta.internship_type_id,
        subject_id=ta.subject_id,
        student_group_size=ta.student_group_size,
        assignment_status=ta.assignment_status,
        is_manual_override=ta.is_manual_override,
        notes=ta.notes,
        assigned_at=ta.assigned_at,
        created_at=ta.created_at,
        updated_at=ta.updated_at,
    )


def snapshot(ta: TeacherAssignment) -> Dict[str, Any]:
    return _to_response(ta).model_dump(mode="json")


async def insert_assignment(
    db: AsyncSession,
    plan: AllocationPlan,
    teacher_id: UUID,
    internship_type_id: UUID,
    subject_id: UUID,
    *,
    student_group_size: int = 1,
    assignment_status: AssignmentStatus = AssignmentStatus.PLANNED,
    is_manual_override: bool = False,
    notes: Optional[str] = None,
) -> TeacherAssignment:
    """
    Insert one assignment after checking the (plan, teacher, internship type, subject) tuple is free.
    Does not recalculate credit hours and does not commit.
    """
    existing = await db.execute(
        select(TeacherAssignment.id).where(
            TeacherAssignment.plan_id == plan.id,
            TeacherAssignment.teacher_id == teacher_id,
            TeacherAssignment.internship_type_id == internship_type_id,
            TeacherAssignment.subject_id == subject_id,
        )
    )
    if existing.scalar_one_or_none():
        raise DuplicateError("Teacher is already assigned to this internship type and subject in this plan")
    ta = TeacherAssignment(
        plan_id=plan.id,
        teacher_id=teacher_id,
        internship_type_id=internship_type_id,
        subject_id=subject_id,
        student_group_size=student_group_size,
        assignment_status=assignment_status.value,
        is_manual_override=is_manual_override,
        notes=notes,
    )
    db.add(ta)
    await db.flush()
    return ta


async def _get_year(db: AsyncSession, plan: AllocationPlan) -> AcademicYear:
    year = await db.get(AcademicYear, plan.academic_year_id)
    if year is None:
        raise NotFoundError("Academic year not found")
    return year


async def _get_assignment_in_plan(db: AsyncSession, plan_id: UUID, assignment_id: UUID) -> TeacherAssignment:
    ta = await db.get(TeacherAssignment, assignment_id)
    if not ta:
        raise NotFoundError("Teacher assignment not found")
    if ta.plan_id != plan_id:
        raise ValidationError("Assignment does not belong to this allocation plan")
    return ta


async def _commit(db: AsyncSession) -> None:
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise DuplicateError("Teacher is already assigned to this internship type and subject in this plan")


async def create_assignment(
    db: AsyncSession,
    plan_id: UUID,
    payload: TeacherAssignmentCreate,
    performed_by: Optional[UUID] = None,
) -> TeacherAssignmentResponse:
    plan = await get_plan_or_404(db, plan_id)
    ensure_not_archived(plan, "add assignments to")
    year = await _get_year(db, plan)
    if year.is_locked:
        raise IllegalStateError("Academic year is locked; no new assignments can be planned")
    teacher = await db.get(Teacher, payload.teacher_id)
    if not teacher:
        raise NotFoundError("Teacher not found")
    if teacher.employment_status != EmploymentStatus.ACTIVE.value:
        raise IllegalStateError("Teacher is not active")
    if await db.get(InternshipType, payload.internship_type_id) is None:
        raise NotFoundError("Internship type not found")
    subject = await db.get(Subject, payload.subject_id)
    if not subject:
        raise NotFoundError("Subject not found")
    if not subject.is_active:
        raise IllegalStateError("Subject is not active")

    ta = await insert_assignment(
        db,
        plan,
        payload.teacher_id,
        payload.internship_type_id,
        payload.subject_id,
        student_group_size=payload.student_group_size,
        assignment_status=payload.assignment_status,
        is_manual_override=payload.is_manual_override,
        notes=payload.notes,
    )
    await recalculate_teachers(db, year, [ta.teacher_id])
    await log_plan_change(
        db,
        plan.id,
        ChangeType.CREATE,
        ENTITY_TEACHER_ASSIGNMENT,
        ta.id,
        new_value=snapshot(ta),
        performed_by=performed_by,
    )
    await _commit(db)
    await db.refresh(ta)
    logger.info("Assigned teacher %s to plan %s", ta.teacher_id, plan_id)
    return _to_response(ta)


async def update_assignment(
    db: AsyncSession,
    plan_id: UUID,
    assignment_id: UUID,
    payload: TeacherAssignmentUpdate,
    performed_by: Optional[UUID] = None,
) -> TeacherAssignmentResponse:
    """Update an assignment. Changing group size or status (e.g. CANCELLED) refreshes the teacher's credit hours."""
    plan = await get_plan_or_404(db, plan_id)
    ensure_not_archived(plan, "change assignments of")
    ta = await _get_assignment_in_plan(db, plan_id, assignment_id)
    before = snapshot(ta)

    reviving = (
        ta.assignment_status == AssignmentStatus.CANCELLED.value
        and payload.assignment_status not in (None, AssignmentStatus.CANCELLED)
    )
    if reviving and (await _get_year(db, plan)).is_locked:
        raise IllegalStateError("Academic year is locked; a cancelled assignment cannot be reinstated")

    recalc_needed = False
    status_changed = False
    if payload.student_group_size is not None:
        ta.student_group_size = payload.student_group_size
        recalc_needed = True
    if payload.assignment_status is not None:
        status_changed = payload.assignment_status.value != ta.assignment_status
        ta.assignment_status = payload.assignment_status.value
        recalc_needed = True
    if payload.is_manual_override is not None:
        ta.is_manual_override = payload.is_manual_override
    if payload.notes is not None:
        ta.notes = payload.notes
    await db.flush()

    if recalc_needed:
        year = await _get_year(db, plan)
        await recalculate_teachers(db, year, [ta.teacher_id])
    await log_plan_change(
        db,
        plan.id,
        ChangeType.STATUS_CHANGE if status_changed else ChangeType.UPDATE,
        ENTITY_TEACHER_ASSIGNMENT,
        ta.id,
        old_value=before,
        new_value=snapshot(ta),
        performed_by=performed_by,
    )
    await _commit(db)
    await db.refresh(ta)
    return _to_response(ta)


async def delete_assignment(
    db: AsyncSession,
    plan_id: UUID,
    assignment_id: UUID,
    performed_by: Optional[UUID] = None,
) -> None:
    plan = await get_plan_or_404(db, plan_id)
    ensure_not_archived(plan, "remove assignments from")
    ta = await _get_assignment_in_plan(db, plan_id, assignment_id)
    before = snapshot(ta)
    teacher_id = ta.teacher_id

    await db.delete(ta)
    await db.flush()
    year = await _get_year(db, plan)
    await recalculate_teachers(db, year, [teacher_id])
    await log_plan_change(
        db,
        plan.id,
        ChangeType.DELETE,
        ENTITY_TEACHER_ASSIGNMENT,
        assignment_id,
        old_value=before,
        performed_by=performed_by,
    )
    await db.commit()
    logger.info("Removed assignment %s from plan %s", assignment_id, plan_id)


async def get_assignment(db: AsyncSession, plan_id: UUID, assignment_id: UUID) -> Optional[TeacherAssignmentResponse]:
    ta = await db.get(TeacherAssignment, assignment_id)
    if not ta or ta.plan_id != plan_id:
        return None
    return _to_response(ta)


async def list_assignments(
    db: AsyncSession,
    plan_id: UUID,
    teacher_id: Optional[UUID] = None,
    internship_type_id: Optional[UUID] = None,
    subject_id: Optional[UUID] = None,
    status_filter: Optional[AssignmentStatus] = None,
) -> List[TeacherAssignmentResponse]:
    stmt = select(TeacherAssignment).where(TeacherAssignment.plan_id == plan_id)
    if teacher_id is not None:
        stmt = stmt.where(TeacherAssignment.teacher_id == teacher_id)
    if internship_type_id is not None:
        stmt = stmt.where(TeacherAssignment.internship_type_id == internship_type_id)
    if subject_id is not None:
        stmt = stmt.where(TeacherAssignment.subject_id == subject_id)
    if status_filter is not None:
        stmt = stmt.where(TeacherAssignment.assignment_status == status_filter.value)
    stmt = stmt.order_by(TeacherAssignment.assigned_at, TeacherAssignment.teacher_id)
    result = await db.execute(stmt)
    return [_to_response(t) for t in result.scalars().all()]
