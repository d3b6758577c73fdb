import logging
from typing import Any, Dict, List, Optional, Set
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from internship_allocation.api.v1.credit_hours.service import recalculate_teachers
from internship_allocation.api.v1.plan_change_logs.service import ENTITY_ALLOCATION_PLAN, log_plan_change
from internship_allocation.core.config import settings
from internship_allocation.core.enums import ChangeType, CreditHoursScope, PlanStatus
from internship_allocation.core.exceptions import DuplicateError, IllegalStateError, NotFoundError
from internship_allocation.core.models import AcademicYear, AllocationPlan, TeacherAssignment

from .schemas import AllocationPlanCreate, AllocationPlanResponse, AllocationPlanUpdate

logger = logging.getLogger(__name__)


def _to_response(plan: AllocationPlan) -> AllocationPlanResponse:
    return AllocationPlanResponse(
        id=plan.id,
        academic_year_id=plan.academic_year_id,
        plan_name=plan.plan_name,
        plan_version=plan.plan_version,
        status=plan.status,
        is_current=plan.is_current,
        notes=plan.notes,
        created_by=plan.created_by,
        created_at=plan.created_at,
        updated_at=plan.updated_at,
    )


def _snapshot(plan: AllocationPlan) -> Dict[str, Any]:
    return _to_response(plan).model_dump(mode="json")


def ensure_not_archived(plan: AllocationPlan, action: str) -> None:
    if plan.status == PlanStatus.ARCHIVED.value:
        raise IllegalStateError(f"Cannot {action} an ARCHIVED allocation plan; create a new version instead")


def _check_transition(current: str, target: PlanStatus) -> None:
    """Status only moves forward: DRAFT -> IN_REVIEW -> APPROVED -> ARCHIVED (steps may be skipped)."""
    if target.rank <= PlanStatus(current).rank:
        raise IllegalStateError(f"Cannot change plan status from {current} to {target.value}")


async def get_plan_or_404(db: AsyncSession, plan_id: UUID, *, for_update: bool = False) -> AllocationPlan:
    stmt = select(AllocationPlan).where(AllocationPlan.id == plan_id)
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    plan = result.scalar_one_or_none()
    if not plan:
        raise NotFoundError("Allocation plan not found")
    return plan


async def _make_current(db: AsyncSession, plan: AllocationPlan) -> None:
    """Clear is_current on every other plan of the year, then set it on this one. Caller commits both together."""
    stmt = update(AllocationPlan).where(
        AllocationPlan.academic_year_id == plan.academic_year_id,
        AllocationPlan.is_current.is_(True),
    )
    if plan.id is not None:
        stmt = stmt.where(AllocationPlan.id != plan.id)
    await db.execute(stmt.values(is_current=False))
    plan.is_current = True


async def _current_plan_ids(db: AsyncSession, academic_year_id: UUID) -> Set[UUID]:
    result = await db.execute(
        select(AllocationPlan.id).where(
            AllocationPlan.academic_year_id == academic_year_id,
            AllocationPlan.is_current.is_(True),
        )
    )
    return set(result.scalars().all())


async def _recalculate_after_current_change(db: AsyncSession, academic_year_id: UUID, plan_ids: Set[UUID]) -> None:
    """
    With CREDIT_HOURS_SCOPE=CURRENT_PLAN the current flag decides which assignments count.
    Refresh the ledger of every teacher with assignments in the plans that gained or lost it. Caller must commit.
    """
    if settings.credit_hours_scope != CreditHoursScope.CURRENT_PLAN.value or not plan_ids:
        return
    year = await db.get(AcademicYear, academic_year_id)
    if year is None:
        raise NotFoundError("Academic year not found")
    result = await db.execute(
        select(TeacherAssignment.teacher_id).where(TeacherAssignment.plan_id.in_(plan_ids)).distinct()
    )
    await recalculate_teachers(db, year, result.scalars().all())


async def _commit(db: AsyncSession, plan: AllocationPlan) -> AllocationPlanResponse:
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise DuplicateError("Another plan of this academic year is already current or uses this version")
    await db.refresh(plan)
    return _to_response(plan)


async def create_plan(
    db: AsyncSession,
    payload: AllocationPlanCreate,
    performed_by: Optional[UUID] = None,
) -> AllocationPlanResponse:
    """Create allocation plan. If is_current=true, unset current on all other plans of the year (transaction)."""
    if await db.get(AcademicYear, payload.academic_year_id) is None:
        raise NotFoundError("Academic year not found")
    plan_version = payload.plan_version.strip()
    existing = await db.execute(
        select(AllocationPlan.id).where(
            AllocationPlan.academic_year_id == payload.academic_year_id,
            AllocationPlan.plan_version == plan_version,
        )
    )
    if existing.scalar_one_or_none():
        raise DuplicateError(f"Allocation plan version '{plan_version}' already exists for this academic year")
    if payload.is_current and payload.status == PlanStatus.ARCHIVED:
        raise IllegalStateError("An ARCHIVED allocation plan cannot be current")

    plan = AllocationPlan(
        academic_year_id=payload.academic_year_id,
        plan_name=payload.plan_name.strip(),
        plan_version=plan_version,
        status=payload.status.value,
        is_current=False,
        notes=payload.notes,
        created_by=performed_by,
    )
    previous_current: Set[UUID] = set()
    if payload.is_current:
        previous_current = await _current_plan_ids(db, payload.academic_year_id)
        await _make_current(db, plan)
    db.add(plan)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise DuplicateError(f"Allocation plan version '{plan_version}' already exists for this academic year")
    await _recalculate_after_current_change(db, plan.academic_year_id, previous_current)
    await log_plan_change(
        db,
        plan.id,
        ChangeType.CREATE,
        ENTITY_ALLOCATION_PLAN,
        plan.id,
        new_value=_snapshot(plan),
        performed_by=performed_by,
    )
    response = await _commit(db, plan)
    logger.info("Created allocation plan %s v%s for year %s", plan.id, plan.plan_version, plan.academic_year_id)
    return response


async def update_plan(
    db: AsyncSession,
    plan_id: UUID,
    payload: AllocationPlanUpdate,
    performed_by: Optional[UUID] = None,
) -> AllocationPlanResponse:
    """Update name, notes, status or currency. Archiving through status also clears is_current."""
    plan = await get_plan_or_404(db, plan_id)
    ensure_not_archived(plan, "update")
    before = _snapshot(plan)

    status_changed = payload.status is not None and payload.status.value != plan.status
    if status_changed:
        _check_transition(plan.status, payload.status)
    archiving = status_changed and payload.status == PlanStatus.ARCHIVED
    if archiving and payload.is_current:
        raise IllegalStateError("An ARCHIVED allocation plan cannot be current")

    affected = await _current_plan_ids(db, plan.academic_year_id) | {plan.id}
    if payload.is_current and not plan.is_current:
        await _make_current(db, plan)
    elif payload.is_current is False or archiving:
        plan.is_current = False
    if payload.plan_name is not None:
        plan.plan_name = payload.plan_name.strip()
    if payload.notes is not None:
        plan.notes = payload.notes
    if status_changed:
        plan.status = payload.status.value

    await db.flush()
    if plan.is_current != before["is_current"]:
        await _recalculate_after_current_change(db, plan.academic_year_id, affected)
    await log_plan_change(
        db,
        plan.id,
        ChangeType.STATUS_CHANGE if status_changed else ChangeType.UPDATE,
        ENTITY_ALLOCATION_PLAN,
        plan.id,
        old_value=before,
        new_value=_snapshot(plan),
        performed_by=performed_by,
    )
    response = await _commit(db, plan)
    logger.info("Updated allocation plan %s", plan_id)
    return response


async def change_plan_status(
    db: AsyncSession,
    plan_id: UUID,
    status: PlanStatus,
    performed_by: Optional[UUID] = None,
    reason: Optional[str] = None,
) -> AllocationPlanResponse:
    """Move the plan forward in its workflow."""
    if status == PlanStatus.ARCHIVED:
        return await archive_plan(db, plan_id, performed_by=performed_by, reason=reason)
    plan = await get_plan_or_404(db, plan_id)
    ensure_not_archived(plan, "change the status of")
    _check_transition(plan.status, status)
    before = _snapshot(plan)
    plan.status = status.value
    await db.flush()
    await log_plan_change(
        db,
        plan.id,
        ChangeType.STATUS_CHANGE,
        ENTITY_ALLOCATION_PLAN,
        plan.id,
        old_value=before,
        new_value=_snapshot(plan),
        performed_by=performed_by,
        reason=reason,
    )
    response = await _commit(db, plan)
    logger.info("Allocation plan %s moved from %s to %s", plan_id, before["status"], status.value)
    return response


async def set_current_plan(
    db: AsyncSession,
    plan_id: UUID,
    performed_by: Optional[UUID] = None,
) -> AllocationPlanResponse:
    """Set this plan as current for its year. All other plans of the year become non-current (transaction)."""
    plan = await get_plan_or_404(db, plan_id)
    ensure_not_archived(plan, "set as current")
    before = _snapshot(plan)
    affected = await _current_plan_ids(db, plan.academic_year_id) | {plan.id}
    await _make_current(db, plan)
    await db.flush()
    if not before["is_current"]:
        await _recalculate_after_current_change(db, plan.academic_year_id, affected)
    await log_plan_change(
        db,
        plan.id,
        ChangeType.UPDATE,
        ENTITY_ALLOCATION_PLAN,
        plan.id,
        old_value=before,
        new_value=_snapshot(plan),
        performed_by=performed_by,
        reason="Set as current plan",
    )
    response = await _commit(db, plan)
    logger.info("Allocation plan %s is now current for year %s", plan_id, plan.academic_year_id)
    return response


async def archive_plan(
    db: AsyncSession,
    plan_id: UUID,
    performed_by: Optional[UUID] = None,
    reason: Optional[str] = None,
) -> AllocationPlanResponse:
    """Archive the plan (status=ARCHIVED, is_current=false). It becomes read-only."""
    plan = await get_plan_or_404(db, plan_id)
    if plan.status == PlanStatus.ARCHIVED.value:
        raise IllegalStateError("Allocation plan is already ARCHIVED")
    before = _snapshot(plan)
    plan.status = PlanStatus.ARCHIVED.value
    plan.is_current = False
    await db.flush()
    if before["is_current"]:
        await _recalculate_after_current_change(db, plan.academic_year_id, {plan.id})
    await log_plan_change(
        db,
        plan.id,
        ChangeType.STATUS_CHANGE,
        ENTITY_ALLOCATION_PLAN,
        plan.id,
        old_value=before,
        new_value=_snapshot(plan),
        performed_by=performed_by,
        reason=reason,
    )
    response = await _commit(db, plan)
    logger.info("Archived allocation plan %s", plan_id)
    return response


async def get_plan(db: AsyncSession, plan_id: UUID) -> Optional[AllocationPlanResponse]:
    plan = await db.get(AllocationPlan, plan_id)
    return _to_response(plan) if plan else None


async def get_current_plan_for_year(db: AsyncSession, academic_year_id: UUID) -> AllocationPlanResponse:
    """The single plan of the year with is_current=true."""
    result = await db.execute(
        select(AllocationPlan).where(
            AllocationPlan.academic_year_id == academic_year_id,
            AllocationPlan.is_current.is_(True),
        )
    )
    plan = result.scalar_one_or_none()
    if not plan:
        raise NotFoundError("No current allocation plan for this academic year")
    return _to_response(plan)


async def list_plans(
    db: AsyncSession,
    academic_year_id: UUID,
    status_filter: Optional[PlanStatus] = None,
    is_current: Optional[bool] = None,
) -> List[AllocationPlanResponse]:
    stmt = select(AllocationPlan).where(AllocationPlan.academic_year_id == academic_year_id)
    if status_filter is not None:
        stmt = stmt.where(AllocationPlan.status == status_filter.value)
    if is_current is not None:
        stmt = stmt.where(AllocationPlan.is_current.is_(is_current))
    stmt = stmt.order_by(AllocationPlan.created_at.desc())
    result = await db.execute(stmt)
    return [_to_response(p) for p in result.scalars().all()]
