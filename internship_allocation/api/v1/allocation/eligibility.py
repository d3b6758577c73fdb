"""
Eligibility filter for internship demands.

Works on a TeacherPool: the teacher population of one academic year flattened into
lookup maps keyed by teacher id, so the filter never walks ORM relationships.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Set, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from internship_allocation.core.enums import SUBJECT_AVAILABLE, AvailabilityStatus, EmploymentStatus
from internship_allocation.core.models import (
    School,
    Teacher,
    TeacherAvailability,
    TeacherQualification,
    TeacherSubject,
    ZoneConstraint,
)


@dataclass(frozen=True)
class PoolTeacher:
    id: UUID
    employment_status: str
    school_type: str
    zone_number: int


@dataclass(frozen=True)
class DemandKey:
    """The parts of an InternshipDemand the filter looks at."""

    internship_type_id: UUID
    subject_id: UUID
    school_type: str


@dataclass
class TeacherPool:
    teachers: Dict[UUID, PoolTeacher] = field(default_factory=dict)
    # teacher id -> subject ids held as a qualification
    qualified_subjects: Dict[UUID, Set[UUID]] = field(default_factory=dict)
    # teacher id -> subject ids marked AVAILABLE for the year
    available_subjects: Dict[UUID, Set[UUID]] = field(default_factory=dict)
    # teacher id -> internship type ids the teacher is available for this year
    available_types: Dict[UUID, Set[UUID]] = field(default_factory=dict)
    # (zone number, internship type id) -> is_allowed; missing key means not allowed
    zone_rules: Dict[Tuple[int, UUID], bool] = field(default_factory=dict)


def is_eligible(teacher: PoolTeacher, demand: DemandKey, pool: TeacherPool) -> bool:
    if teacher.employment_status != EmploymentStatus.ACTIVE.value:
        return False
    if (
        demand.subject_id not in pool.qualified_subjects.get(teacher.id, ())
        and demand.subject_id not in pool.available_subjects.get(teacher.id, ())
    ):
        return False
    if demand.internship_type_id not in pool.available_types.get(teacher.id, ()):
        return False
    return pool.zone_rules.get((teacher.zone_number, demand.internship_type_id), False)


def eligible_teachers(demand: DemandKey, pool: TeacherPool) -> List[UUID]:
    """Ids of the teachers passing employment, subject, availability and zone checks, ascending."""
    return sorted(t.id for t in pool.teachers.values() if is_eligible(t, demand, pool))


async def load_teacher_pool(db: AsyncSession, academic_year_id: UUID) -> TeacherPool:
    """Read the year's teacher population with one query per source table."""
    pool = TeacherPool()

    teachers = await db.execute(
        select(Teacher.id, Teacher.employment_status, School.school_type, School.zone_number).join(
            School, School.id == Teacher.school_id
        )
    )
    for teacher_id, employment_status, school_type, zone_number in teachers.all():
        pool.teachers[teacher_id] = PoolTeacher(teacher_id, employment_status, school_type, zone_number)

    qualifications = await db.execute(select(TeacherQualification.teacher_id, TeacherQualification.subject_id))
    for teacher_id, subject_id in qualifications.all():
        pool.qualified_subjects.setdefault(teacher_id, set()).add(subject_id)

    subjects = await db.execute(
        select(TeacherSubject.teacher_id, TeacherSubject.subject_id).where(
            TeacherSubject.academic_year_id == academic_year_id,
            TeacherSubject.availability_status == SUBJECT_AVAILABLE,
        )
    )
    for teacher_id, subject_id in subjects.all():
        pool.available_subjects.setdefault(teacher_id, set()).add(subject_id)

    availabilities = await db.execute(
        select(TeacherAvailability.teacher_id, TeacherAvailability.internship_type_id).where(
            TeacherAvailability.academic_year_id == academic_year_id,
            TeacherAvailability.is_available.is_(True),
            TeacherAvailability.status == AvailabilityStatus.AVAILABLE.value,
        )
    )
    for teacher_id, internship_type_id in availabilities.all():
        pool.available_types.setdefault(teacher_id, set()).add(internship_type_id)

    zones = await db.execute(
        select(ZoneConstraint.zone_number, ZoneConstraint.internship_type_id, ZoneConstraint.is_allowed)
    )
    for zone_number, internship_type_id, is_allowed in zones.all():
        pool.zone_rules[(zone_number, internship_type_id)] = bool(is_allowed)

    return pool
