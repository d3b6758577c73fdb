import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from internship_allocation.api.v1.credit_hours.service import get_credit_hours
from internship_allocation.api.v1.teacher_assignments import service
from internship_allocation.api.v1.teacher_assignments.schemas import TeacherAssignmentCreate, TeacherAssignmentUpdate
from internship_allocation.core.enums import AssignmentStatus
from internship_allocation.core.exceptions import DuplicateError, IllegalStateError, ValidationError
from internship_allocation.core.models import PlanChangeLog, TeacherAssignment


@pytest.fixture()
async def ledger(seed):
    year = await seed.year(total_credit_hours=10, elementary_school_hours=2, middle_school_hours=3)
    school = await seed.school(school_type="PRIMARY")
    itype = await seed.internship_type()
    subject = await seed.subject()
    teacher = await seed.teacher(school)
    plan = await seed.plan(year)
    return {"year": year, "school": school, "itype": itype, "subject": subject, "teacher": teacher, "plan": plan}


def _payload(ledger, **kwargs) -> TeacherAssignmentCreate:
    return TeacherAssignmentCreate(
        teacher_id=ledger["teacher"].id,
        internship_type_id=ledger["itype"].id,
        subject_id=ledger["subject"].id,
        **kwargs,
    )


async def _logs(db: AsyncSession, plan_id):
    result = await db.execute(
        select(PlanChangeLog).where(PlanChangeLog.plan_id == plan_id).order_by(PlanChangeLog.event_timestamp)
    )
    return result.scalars().all()


@pytest.mark.asyncio
async def test_create_assignment_recalculates_and_logs(db_session: AsyncSession, ledger) -> None:
    plan, teacher, year = ledger["plan"], ledger["teacher"], ledger["year"]

    ta = await service.create_assignment(db_session, plan.id, _payload(ledger, student_group_size=4))

    assert ta.assignment_status == AssignmentStatus.PLANNED
    assert ta.student_group_size == 4
    hours = await get_credit_hours(db_session, teacher.id, year.id)
    assert hours.assignments_count == 1
    assert hours.credit_hours_allocated == 2
    assert hours.credit_balance == 8
    logs = await _logs(db_session, plan.id)
    assert [(log.change_type, log.entity_type, log.entity_id) for log in logs] == [
        ("CREATE", "TEACHER_ASSIGNMENT", ta.id)
    ]


@pytest.mark.asyncio
async def test_duplicate_tuple_rejected(db_session: AsyncSession, ledger) -> None:
    plan = ledger["plan"]
    await service.create_assignment(db_session, plan.id, _payload(ledger))

    with pytest.raises(DuplicateError, match="already assigned"):
        await service.create_assignment(db_session, plan.id, _payload(ledger))

    count = await db_session.scalar(select(func.count(TeacherAssignment.id)).where(TeacherAssignment.plan_id == plan.id))
    assert count == 1


@pytest.mark.asyncio
async def test_same_teacher_in_another_plan_is_allowed(db_session: AsyncSession, seed, ledger) -> None:
    other = await seed.plan(ledger["year"], plan_version="2.0")
    await service.create_assignment(db_session, ledger["plan"].id, _payload(ledger))
    await service.create_assignment(db_session, other.id, _payload(ledger))

    hours = await get_credit_hours(db_session, ledger["teacher"].id, ledger["year"].id)
    assert hours.assignments_count == 2


@pytest.mark.asyncio
async def test_cancel_releases_credit_hours(db_session: AsyncSession, ledger) -> None:
    plan, teacher, year = ledger["plan"], ledger["teacher"], ledger["year"]
    ta = await service.create_assignment(db_session, plan.id, _payload(ledger))

    updated = await service.update_assignment(
        db_session, plan.id, ta.id, TeacherAssignmentUpdate(assignment_status=AssignmentStatus.CANCELLED)
    )

    assert updated.assignment_status == AssignmentStatus.CANCELLED
    hours = await get_credit_hours(db_session, teacher.id, year.id)
    assert hours.assignments_count == 0
    assert hours.credit_hours_allocated == 0
    assert hours.credit_balance == 10
    logs = await _logs(db_session, plan.id)
    assert logs[-1].change_type == "STATUS_CHANGE"
    assert logs[-1].old_value["assignment_status"] == "PLANNED"
    assert logs[-1].new_value["assignment_status"] == "CANCELLED"


@pytest.mark.asyncio
async def test_confirmed_assignment_still_counts(db_session: AsyncSession, ledger) -> None:
    plan, teacher, year = ledger["plan"], ledger["teacher"], ledger["year"]
    ta = await service.create_assignment(db_session, plan.id, _payload(ledger))

    await service.update_assignment(
        db_session, plan.id, ta.id, TeacherAssignmentUpdate(assignment_status=AssignmentStatus.CONFIRMED)
    )

    hours = await get_credit_hours(db_session, teacher.id, year.id)
    assert hours.assignments_count == 1


@pytest.mark.asyncio
async def test_notes_update_logged_as_update(db_session: AsyncSession, ledger) -> None:
    plan = ledger["plan"]
    ta = await service.create_assignment(db_session, plan.id, _payload(ledger))

    updated = await service.update_assignment(db_session, plan.id, ta.id, TeacherAssignmentUpdate(notes="Room 4"))

    assert updated.notes == "Room 4"
    logs = await _logs(db_session, plan.id)
    assert logs[-1].change_type == "UPDATE"


@pytest.mark.asyncio
async def test_delete_recalculates_and_logs(db_session: AsyncSession, ledger) -> None:
    plan, teacher, year = ledger["plan"], ledger["teacher"], ledger["year"]
    ta = await service.create_assignment(db_session, plan.id, _payload(ledger))

    await service.delete_assignment(db_session, plan.id, ta.id)

    assert await service.get_assignment(db_session, plan.id, ta.id) is None
    hours = await get_credit_hours(db_session, teacher.id, year.id)
    assert hours.assignments_count == 0
    logs = await _logs(db_session, plan.id)
    assert logs[-1].change_type == "DELETE"
    assert logs[-1].entity_id == ta.id
    assert logs[-1].new_value is None


@pytest.mark.asyncio
async def test_assignment_from_other_plan_rejected(db_session: AsyncSession, seed, ledger) -> None:
    other = await seed.plan(ledger["year"], plan_version="2.0")
    ta = await service.create_assignment(db_session, ledger["plan"].id, _payload(ledger))

    with pytest.raises(ValidationError):
        await service.delete_assignment(db_session, other.id, ta.id)
    assert await service.get_assignment(db_session, other.id, ta.id) is None


@pytest.mark.asyncio
async def test_archived_plan_rejects_mutations(db_session: AsyncSession, seed, ledger) -> None:
    archived = await seed.plan(ledger["year"], plan_version="0.1", status="ARCHIVED")

    with pytest.raises(IllegalStateError):
        await service.create_assignment(db_session, archived.id, _payload(ledger))
    assert await _logs(db_session, archived.id) == []


@pytest.mark.asyncio
async def test_inactive_teacher_and_subject_rejected(db_session: AsyncSession, seed, ledger) -> None:
    retired = await seed.teacher(ledger["school"], employment_status="RETIRED")
    old_subject = await seed.subject(is_active=False)

    with pytest.raises(IllegalStateError):
        await service.create_assignment(
            db_session,
            ledger["plan"].id,
            TeacherAssignmentCreate(
                teacher_id=retired.id, internship_type_id=ledger["itype"].id, subject_id=ledger["subject"].id
            ),
        )
    with pytest.raises(IllegalStateError):
        await service.create_assignment(
            db_session,
            ledger["plan"].id,
            TeacherAssignmentCreate(
                teacher_id=ledger["teacher"].id, internship_type_id=ledger["itype"].id, subject_id=old_subject.id
            ),
        )


@pytest.mark.asyncio
async def test_locked_year_rejects_new_assignments(db_session: AsyncSession, seed, ledger) -> None:
    locked = await seed.year(is_locked=True)
    plan = await seed.plan(locked)

    with pytest.raises(IllegalStateError):
        await service.create_assignment(db_session, plan.id, _payload(ledger))


@pytest.mark.asyncio
async def test_list_assignments_filters(db_session: AsyncSession, seed, ledger) -> None:
    plan = ledger["plan"]
    second_teacher = await seed.teacher(ledger["school"])
    a = await service.create_assignment(db_session, plan.id, _payload(ledger))
    b = await service.create_assignment(
        db_session,
        plan.id,
        TeacherAssignmentCreate(
            teacher_id=second_teacher.id, internship_type_id=ledger["itype"].id, subject_id=ledger["subject"].id
        ),
    )
    await service.update_assignment(
        db_session, plan.id, b.id, TeacherAssignmentUpdate(assignment_status=AssignmentStatus.CANCELLED)
    )

    assert {ta.id for ta in await service.list_assignments(db_session, plan.id)} == {a.id, b.id}
    assert [ta.id for ta in await service.list_assignments(db_session, plan.id, teacher_id=ledger["teacher"].id)] == [
        a.id
    ]
    cancelled = await service.list_assignments(db_session, plan.id, status_filter=AssignmentStatus.CANCELLED)
    assert [ta.id for ta in cancelled] == [b.id]


@pytest.mark.asyncio
async def test_locked_year_blocks_reinstating_cancelled(db_session: AsyncSession, ledger) -> None:
    plan, teacher, year = ledger["plan"], ledger["teacher"], ledger["year"]
    ta = await service.create_assignment(db_session, plan.id, _payload(ledger, student_group_size=2))
    await service.update_assignment(
        db_session, plan.id, ta.id, TeacherAssignmentUpdate(assignment_status=AssignmentStatus.CANCELLED)
    )
    year.is_locked = True
    await db_session.commit()

    with pytest.raises(IllegalStateError):
        await service.update_assignment(
            db_session,
            plan.id,
            ta.id,
            TeacherAssignmentUpdate(assignment_status=AssignmentStatus.PLANNED, student_group_size=5),
        )

    stored = await service.get_assignment(db_session, plan.id, ta.id)
    assert stored.assignment_status == AssignmentStatus.CANCELLED
    assert stored.student_group_size == 2
    assert (await get_credit_hours(db_session, teacher.id, year.id)).assignments_count == 0

    # Edits that do not bring the assignment back stay allowed.
    updated = await service.update_assignment(db_session, plan.id, ta.id, TeacherAssignmentUpdate(notes="Kept"))
    assert updated.notes == "Kept"
