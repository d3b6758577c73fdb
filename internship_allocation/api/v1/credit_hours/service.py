import logging
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from internship_allocation.core.config import settings
from internship_allocation.core.enums import LIVE_ASSIGNMENT_STATUSES, CreditHoursScope, SchoolType
from internship_allocation.core.exceptions import NotFoundError
from internship_allocation.core.models import (
    AcademicYear,
    AllocationPlan,
    CreditHourTracking,
    School,
    Teacher,
    TeacherAssignment,
)

from .schemas import CreditHourTrackingResponse, CreditHourTrackingUpdate

logger = logging.getLogger(__name__)


def _to_response(row: CreditHourTracking) -> CreditHourTrackingResponse:
    return CreditHourTrackingResponse(
        id=row.id,
        teacher_id=row.teacher_id,
        academic_year_id=row.academic_year_id,
        assignments_count=row.assignments_count,
        credit_hours_allocated=row.credit_hours_allocated,
        credit_balance=row.credit_balance,
        notes=row.notes,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def hours_per_assignment(school_type: str, year: AcademicYear) -> int:
    """PRIMARY schools use the elementary budget, every other school type the middle-school one."""
    if school_type == SchoolType.PRIMARY.value:
        return year.elementary_school_hours
    return year.middle_school_hours


def _plans_in_scope(year_id: UUID):
    stmt = select(AllocationPlan.id).where(AllocationPlan.academic_year_id == year_id)
    if settings.credit_hours_scope == CreditHoursScope.CURRENT_PLAN.value:
        stmt = stmt.where(AllocationPlan.is_current.is_(True))
    return stmt


async def count_live_assignments(
    db: AsyncSession,
    year_id: UUID,
    teacher_ids: Optional[Iterable[UUID]] = None,
) -> Dict[UUID, int]:
    """Number of PLANNED or CONFIRMED assignments per teacher over the plans in scope for the year."""
    stmt = (
        select(TeacherAssignment.teacher_id, func.count(TeacherAssignment.id))
        .where(
            TeacherAssignment.plan_id.in_(_plans_in_scope(year_id)),
            TeacherAssignment.assignment_status.in_(LIVE_ASSIGNMENT_STATUSES),
        )
        .group_by(TeacherAssignment.teacher_id)
    )
    if teacher_ids is not None:
        stmt = stmt.where(TeacherAssignment.teacher_id.in_(list(teacher_ids)))
    result = await db.execute(stmt)
    return {teacher_id: count for teacher_id, count in result.all()}


async def recalculate_teachers(
    db: AsyncSession,
    year: AcademicYear,
    teacher_ids: Iterable[UUID],
) -> List[CreditHourTracking]:
    """
    Recompute and upsert the tracking rows of the given teachers for one year.
    Pure recomputation from the live assignments; running it twice gives the same rows. Caller must commit.
    """
    teacher_ids = sorted(set(teacher_ids))
    if not teacher_ids:
        return []

    school_types = dict(
        (
            await db.execute(
                select(Teacher.id, School.school_type)
                .join(School, School.id == Teacher.school_id)
                .where(Teacher.id.in_(teacher_ids))
            )
        ).all()
    )
    counts = await count_live_assignments(db, year.id, teacher_ids)
    existing = {
        row.teacher_id: row
        for row in (
            await db.execute(
                select(CreditHourTracking).where(
                    CreditHourTracking.academic_year_id == year.id,
                    CreditHourTracking.teacher_id.in_(teacher_ids),
                )
            )
        ).scalars()
    }

    rows: List[CreditHourTracking] = []
    for teacher_id in teacher_ids:
        if teacher_id not in school_types:
            raise NotFoundError(f"Teacher {teacher_id} not found")
        assignments_count = counts.get(teacher_id, 0)
        allocated = float(assignments_count * hours_per_assignment(school_types[teacher_id], year))
        row = existing.get(teacher_id)
        if row is None:
            row = CreditHourTracking(teacher_id=teacher_id, academic_year_id=year.id)
            db.add(row)
        row.assignments_count = assignments_count
        row.credit_hours_allocated = allocated
        row.credit_balance = float(year.total_credit_hours) - allocated
        if row.credit_balance < 0:
            logger.warning(
                "Teacher %s over-allocated in year %s: balance %.1f", teacher_id, year.id, row.credit_balance
            )
        rows.append(row)
    await db.flush()
    return rows


async def recalculate_for_teacher_and_year(
    db: AsyncSession,
    teacher_id: UUID,
    academic_year_id: UUID,
) -> CreditHourTrackingResponse:
    """On-demand refresh of one teacher's ledger row for a year."""
    if await db.get(Teacher, teacher_id) is None:
        raise NotFoundError("Teacher not found")
    year = await db.get(AcademicYear, academic_year_id)
    if year is None:
        raise NotFoundError("Academic year not found")
    rows = await recalculate_teachers(db, year, [teacher_id])
    await db.commit()
    await db.refresh(rows[0])
    return _to_response(rows[0])


async def recalculate_for_year(db: AsyncSession, academic_year_id: UUID) -> List[CreditHourTrackingResponse]:
    """Refresh every teacher that has a ledger row or a live assignment in the year (e.g. after a scope change)."""
    year = await db.get(AcademicYear, academic_year_id)
    if year is None:
        raise NotFoundError("Academic year not found")
    tracked = (
        await db.execute(
            select(CreditHourTracking.teacher_id).where(CreditHourTracking.academic_year_id == academic_year_id)
        )
    ).scalars().all()
    assigned = await count_live_assignments(db, academic_year_id)
    rows = await recalculate_teachers(db, year, set(tracked) | set(assigned))
    await db.commit()
    logger.info("Recalculated credit hours for %d teachers in year %s", len(rows), academic_year_id)
    return [_to_response(r) for r in rows]


async def get_credit_hours(
    db: AsyncSession,
    teacher_id: UUID,
    academic_year_id: UUID,
) -> Optional[CreditHourTrackingResponse]:
    result = await db.execute(
        select(CreditHourTracking).where(
            CreditHourTracking.teacher_id == teacher_id,
            CreditHourTracking.academic_year_id == academic_year_id,
        )
    )
    row = result.scalar_one_or_none()
    return _to_response(row) if row else None


async def list_credit_hours(
    db: AsyncSession,
    academic_year_id: UUID,
    teacher_id: Optional[UUID] = None,
    min_balance: Optional[float] = None,
    max_balance: Optional[float] = None,
    min_hours: Optional[float] = None,
    max_hours: Optional[float] = None,
) -> List[CreditHourTrackingResponse]:
    stmt = select(CreditHourTracking).where(CreditHourTracking.academic_year_id == academic_year_id)
    if teacher_id is not None:
        stmt = stmt.where(CreditHourTracking.teacher_id == teacher_id)
    if min_balance is not None:
        stmt = stmt.where(CreditHourTracking.credit_balance >= min_balance)
    if max_balance is not None:
        stmt = stmt.where(CreditHourTracking.credit_balance <= max_balance)
    if min_hours is not None:
        stmt = stmt.where(CreditHourTracking.credit_hours_allocated >= min_hours)
    if max_hours is not None:
        stmt = stmt.where(CreditHourTracking.credit_hours_allocated <= max_hours)
    stmt = stmt.order_by(CreditHourTracking.credit_balance, CreditHourTracking.teacher_id)
    result = await db.execute(stmt)
    return [_to_response(r) for r in result.scalars().all()]


async def update_credit_hour_notes(
    db: AsyncSession,
    tracking_id: UUID,
    payload: CreditHourTrackingUpdate,
) -> CreditHourTrackingResponse:
    row = await db.get(CreditHourTracking, tracking_id)
    if row is None:
        raise NotFoundError("Credit hour tracking not found")
    row.notes = payload.notes
    await db.commit()
    await db.refresh(row)
    return _to_response(row)
