from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from internship_allocation.api.v1.allocation_reports.service import get_plan_report
from internship_allocation.core.exceptions import NotFoundError
from internship_allocation.core.models import TeacherAssignment


async def _assign(db: AsyncSession, seed, plan, teacher, count: int, status: str = "PLANNED") -> None:
    subject = await seed.subject()
    for _ in range(count):
        itype = await seed.internship_type()
        db.add(
            TeacherAssignment(
                plan_id=plan.id,
                teacher_id=teacher.id,
                internship_type_id=itype.id,
                subject_id=subject.id,
                assignment_status=status,
            )
        )
    await db.commit()


@pytest.mark.asyncio
async def test_plan_report_budget_and_utilization(db_session: AsyncSession, seed) -> None:
    year = await seed.year(total_credit_hours=10, elementary_school_hours=2, middle_school_hours=3)
    primary = await seed.school(school_type="PRIMARY", zone_number=4)
    middle = await seed.school(school_type="MIDDLE")
    plan = await seed.plan(year, is_current=True)

    full = await seed.teacher(primary)
    under = await seed.teacher(middle)
    over = await seed.teacher(primary)
    idle = await seed.teacher(middle)
    retired = await seed.teacher(middle, employment_status="RETIRED")
    await _assign(db_session, seed, plan, full, 2)
    await _assign(db_session, seed, plan, under, 1)
    await _assign(db_session, seed, plan, under, 1, status="CANCELLED")
    await _assign(db_session, seed, plan, over, 3)

    report = await get_plan_report(db_session, plan.id)

    assert report.header.plan_id == plan.id
    assert report.header.academic_year_name == year.year_name
    assert report.header.is_current is True
    assert len(report.assignments) == 7
    cancelled = [a for a in report.assignments if a.assignment_status == "CANCELLED"]
    assert len(cancelled) == 1
    assert cancelled[0].credit_hours == 0
    assert {a.zone_number for a in report.assignments if a.teacher_id == full.id} == {4}

    budget = report.budget_summary
    assert budget.elementary_hours_used == 10  # 5 primary assignments x 2h
    assert budget.middle_school_hours_used == 3
    assert budget.used_hours == 13
    assert budget.remaining_hours == -3
    assert budget.is_over_budget is True

    analysis = report.utilization_analysis
    assert [t.teacher_id for t in analysis.unassigned_teachers] == [idle.id]
    assert [t.teacher_id for t in analysis.under_utilized_teachers] == [under.id]
    assert [t.teacher_id for t in analysis.fully_utilized_teachers] == [full.id]
    assert [t.teacher_id for t in analysis.over_utilized_teachers] == [over.id]
    assert analysis.over_utilized_teachers[0].assignment_count == 3
    assert analysis.over_utilized_teachers[0].notes == "Overloaded (3 assignments)"
    all_listed = (
        analysis.unassigned_teachers
        + analysis.under_utilized_teachers
        + analysis.fully_utilized_teachers
        + analysis.over_utilized_teachers
    )
    assert retired.id not in {t.teacher_id for t in all_listed}


@pytest.mark.asyncio
async def test_empty_plan_report(db_session: AsyncSession, seed) -> None:
    year = await seed.year(total_credit_hours=10)
    plan = await seed.plan(year)

    report = await get_plan_report(db_session, plan.id)

    assert report.assignments == []
    assert report.budget_summary.used_hours == 0
    assert report.budget_summary.remaining_hours == 10
    assert report.budget_summary.is_over_budget is False


@pytest.mark.asyncio
async def test_report_unknown_plan(db_session: AsyncSession) -> None:
    with pytest.raises(NotFoundError):
        await get_plan_report(db_session, uuid4())


@pytest.mark.asyncio
async def test_report_over_http(client: AsyncClient, db_session: AsyncSession, seed) -> None:
    year = await seed.year(elementary_school_hours=2)
    teacher = await seed.teacher(await seed.school(school_type="PRIMARY"))
    plan = await seed.plan(year)
    await _assign(db_session, seed, plan, teacher, 1)

    response = await client.get(f"/api/v1/allocation-plans/{plan.id}/report")
    assert response.status_code == 200
    data = response.json()
    assert data["header"]["plan_version"] == plan.plan_version
    assert data["assignments"][0]["teacher_name"] == f"{teacher.last_name}, {teacher.first_name}"
    assert data["budget_summary"]["elementary_hours_used"] == 2

    response = await client.get(f"/api/v1/allocation-plans/{uuid4()}/report")
    assert response.status_code == 404
