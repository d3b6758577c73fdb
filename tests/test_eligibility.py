"""Unit tests for the eligibility filter over a hand-built TeacherPool."""

from uuid import UUID

import pytest

from internship_allocation.api.v1.allocation.eligibility import (
    DemandKey,
    PoolTeacher,
    TeacherPool,
    eligible_teachers,
    is_eligible,
)
from internship_allocation.api.v1.allocation.selection import fewest_credit_hours_first

T1 = UUID("00000000-0000-0000-0000-000000000001")
T2 = UUID("00000000-0000-0000-0000-000000000002")
T3 = UUID("00000000-0000-0000-0000-000000000003")
SUBJECT = UUID("10000000-0000-0000-0000-000000000001")
OTHER_SUBJECT = UUID("10000000-0000-0000-0000-000000000002")
ITYPE = UUID("20000000-0000-0000-0000-000000000001")

DEMAND = DemandKey(internship_type_id=ITYPE, subject_id=SUBJECT, school_type="PRIMARY")


def _pool(*teachers: PoolTeacher) -> TeacherPool:
    """Every teacher qualified, available and in an allowed zone."""
    pool = TeacherPool()
    for t in teachers:
        pool.teachers[t.id] = t
        pool.qualified_subjects[t.id] = {SUBJECT}
        pool.available_types[t.id] = {ITYPE}
        pool.zone_rules[(t.zone_number, ITYPE)] = True
    return pool


def _teacher(teacher_id: UUID, employment_status: str = "ACTIVE", zone_number: int = 1) -> PoolTeacher:
    return PoolTeacher(teacher_id, employment_status, "PRIMARY", zone_number)


def test_fully_eligible_teacher() -> None:
    t = _teacher(T1)
    assert is_eligible(t, DEMAND, _pool(t))


@pytest.mark.parametrize("employment_status", ["ON_LEAVE", "INACTIVE", "RETIRED"])
def test_non_active_teacher_is_excluded(employment_status: str) -> None:
    t = _teacher(T1, employment_status=employment_status)
    assert not is_eligible(t, DEMAND, _pool(t))


def test_subject_availability_substitutes_for_qualification() -> None:
    t = _teacher(T1)
    pool = _pool(t)
    pool.qualified_subjects[T1] = {OTHER_SUBJECT}
    assert not is_eligible(t, DEMAND, pool)

    pool.available_subjects[T1] = {SUBJECT}
    assert is_eligible(t, DEMAND, pool)


def test_missing_type_availability_excludes() -> None:
    t = _teacher(T1)
    pool = _pool(t)
    pool.available_types[T1] = set()
    assert not is_eligible(t, DEMAND, pool)


def test_zone_without_rule_is_not_allowed() -> None:
    t = _teacher(T1, zone_number=7)
    pool = _pool(t)
    pool.zone_rules.clear()
    assert not is_eligible(t, DEMAND, pool)


def test_zone_rule_disallowed() -> None:
    t = _teacher(T1, zone_number=2)
    pool = _pool(t)
    pool.zone_rules[(2, ITYPE)] = False
    assert not is_eligible(t, DEMAND, pool)


def test_eligible_teachers_sorted_by_id() -> None:
    pool = _pool(_teacher(T3), _teacher(T1), _teacher(T2, employment_status="RETIRED"))
    assert eligible_teachers(DEMAND, pool) == [T1, T3]


def test_eligible_teachers_empty_pool() -> None:
    assert eligible_teachers(DEMAND, TeacherPool()) == []


def test_selection_prefers_fewest_hours_then_lowest_id() -> None:
    hours = {T1: 6.0, T2: 2.0, T3: 2.0}
    ranked = sorted(hours, key=lambda t: fewest_credit_hours_first(t, hours[t]))
    assert ranked == [T2, T3, T1]
