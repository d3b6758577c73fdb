"""
Greedy single-pass matching of teachers to the internship demands of a plan's academic year.

Demands are processed in a stable order (semester, subject code, demand id). For each one the
eligible teachers not yet holding the (plan, internship type, subject) tuple are ranked by the
selection key and the first ones up to the outstanding requirement are assigned. Unmet demand is
reported in the result. The whole run is one transaction.
"""

import logging
from typing import Dict, List, Optional, Set, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from internship_allocation.api.v1.allocation_plans.service import ensure_not_archived, get_plan_or_404
from internship_allocation.api.v1.credit_hours.service import (
    count_live_assignments,
    hours_per_assignment,
    recalculate_teachers,
)
from internship_allocation.api.v1.plan_change_logs.service import ENTITY_TEACHER_ASSIGNMENT, log_plan_change
from internship_allocation.api.v1.teacher_assignments.service import insert_assignment, snapshot
from internship_allocation.core.config import settings
from internship_allocation.core.enums import LIVE_ASSIGNMENT_STATUSES, ChangeType
from internship_allocation.core.exceptions import IllegalStateError, NotFoundError, ServiceError
from internship_allocation.core.models import (
    AcademicYear,
    AllocationPlan,
    InternshipDemand,
    InternshipType,
    Subject,
    TeacherAssignment,
)

from .eligibility import DemandKey, eligible_teachers, load_teacher_pool
from .schemas import AllocationResult, DemandOutcome
from .selection import SelectionKey, fewest_credit_hours_first

logger = logging.getLogger(__name__)

DemandSlot = Tuple[UUID, UUID]  # (internship type id, subject id)


def _student_group_size(demand: InternshipDemand) -> int:
    if demand.student_count and demand.required_teachers > 0:
        return max(1, demand.student_count // demand.required_teachers)
    return settings.default_student_group_size


async def _load_demands(db: AsyncSession, academic_year_id: UUID) -> List[InternshipDemand]:
    result = await db.execute(
        select(InternshipDemand, InternshipType.semester, Subject.subject_code)
        .join(InternshipType, InternshipType.id == InternshipDemand.internship_type_id)
        .join(Subject, Subject.id == InternshipDemand.subject_id)
        .where(InternshipDemand.academic_year_id == academic_year_id)
    )
    rows = sorted(
        result.all(),
        key=lambda r: (r.semester is None, r.semester or 0, r.subject_code, r.InternshipDemand.id),
    )
    return [r.InternshipDemand for r in rows]


async def _load_plan_assignments(
    db: AsyncSession, plan_id: UUID
) -> Tuple[Dict[DemandSlot, Set[UUID]], Dict[DemandSlot, int]]:
    """Teachers already holding each slot (any status) and the number of live assignments per slot."""
    result = await db.execute(
        select(
            TeacherAssignment.teacher_id,
            TeacherAssignment.internship_type_id,
            TeacherAssignment.subject_id,
            TeacherAssignment.assignment_status,
        ).where(TeacherAssignment.plan_id == plan_id)
    )
    taken: Dict[DemandSlot, Set[UUID]] = {}
    live: Dict[DemandSlot, int] = {}
    for teacher_id, internship_type_id, subject_id, assignment_status in result.all():
        slot = (internship_type_id, subject_id)
        taken.setdefault(slot, set()).add(teacher_id)
        if assignment_status in LIVE_ASSIGNMENT_STATUSES:
            live[slot] = live.get(slot, 0) + 1
    return taken, live


async def _run(
    db: AsyncSession,
    plan: AllocationPlan,
    year: AcademicYear,
    performed_by: Optional[UUID],
    selection_key: SelectionKey,
) -> AllocationResult:
    demands = await _load_demands(db, year.id)
    pool = await load_teacher_pool(db, year.id)
    taken, live = await _load_plan_assignments(db, plan.id)

    live_counts = await count_live_assignments(db, year.id)
    credit_hours: Dict[UUID, float] = {
        teacher_id: float(live_counts.get(teacher_id, 0) * hours_per_assignment(t.school_type, year))
        for teacher_id, t in pool.teachers.items()
    }

    touched: Set[UUID] = set()
    outcomes: List[DemandOutcome] = []
    for demand in demands:
        slot = (demand.internship_type_id, demand.subject_id)
        # Live assignments of the slot count toward the first demands that need it.
        already = min(live.get(slot, 0), demand.required_teachers)
        live[slot] = live.get(slot, 0) - already
        needed = demand.required_teachers - already

        created = 0
        if needed > 0:
            holders = taken.setdefault(slot, set())
            key = DemandKey(demand.internship_type_id, demand.subject_id, demand.school_type)
            candidates = [t for t in eligible_teachers(key, pool) if t not in holders]
            candidates.sort(key=lambda t: selection_key(t, credit_hours[t]))
            group_size = _student_group_size(demand)
            for teacher_id in candidates[:needed]:
                ta = await insert_assignment(
                    db,
                    plan,
                    teacher_id,
                    demand.internship_type_id,
                    demand.subject_id,
                    student_group_size=group_size,
                    notes="Demand match",
                )
                await log_plan_change(
                    db,
                    plan.id,
                    ChangeType.CREATE,
                    ENTITY_TEACHER_ASSIGNMENT,
                    ta.id,
                    new_value=snapshot(ta),
                    performed_by=performed_by,
                    reason="Automatic allocation",
                )
                holders.add(teacher_id)
                credit_hours[teacher_id] += hours_per_assignment(pool.teachers[teacher_id].school_type, year)
                touched.add(teacher_id)
                created += 1

        outcome = DemandOutcome(
            demand_id=demand.id,
            internship_type_id=demand.internship_type_id,
            subject_id=demand.subject_id,
            school_type=demand.school_type,
            required_teachers=demand.required_teachers,
            already_assigned=already,
            assignments_created=created,
            shortfall=needed - created,
        )
        if outcome.shortfall > 0:
            logger.warning(
                "Demand %s under-staffed: %d of %d teachers missing",
                demand.id,
                outcome.shortfall,
                demand.required_teachers,
            )
        outcomes.append(outcome)

    await recalculate_teachers(db, year, touched)

    return AllocationResult(
        plan_id=plan.id,
        academic_year_id=year.id,
        demands_processed=len(outcomes),
        assignments_created=sum(o.assignments_created for o in outcomes),
        total_shortfall=sum(o.shortfall for o in outcomes),
        teachers_recalculated=len(touched),
        outcomes=outcomes,
    )


async def allocate(
    db: AsyncSession,
    plan_id: UUID,
    performed_by: Optional[UUID] = None,
    selection_key: SelectionKey = fewest_credit_hours_first,
) -> AllocationResult:
    """
    Fill the outstanding demands of the plan's year. Re-running never duplicates assignments,
    it only tries to fill what is still unmet. All writes commit together or not at all.
    """
    plan = await get_plan_or_404(db, plan_id, for_update=True)
    ensure_not_archived(plan, "run allocation for")
    year = await db.get(AcademicYear, plan.academic_year_id)
    if year is None:
        raise NotFoundError("Academic year not found")
    if year.is_locked:
        raise IllegalStateError("Academic year is locked; allocation cannot run")

    try:
        result = await _run(db, plan, year, performed_by, selection_key)
        await db.commit()
    except (SQLAlchemyError, ServiceError):
        await db.rollback()
        logger.exception("Allocation run for plan %s failed; rolled back", plan_id)
        raise

    logger.info(
        "Allocation for plan %s: %d demands, %d assignments created, shortfall %d",
        plan_id,
        result.demands_processed,
        result.assignments_created,
        result.total_shortfall,
    )
    return result
