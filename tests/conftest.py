import os
from typing import AsyncGenerator, Optional

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from internship_allocation.core.models import (
    AcademicYear,
    AllocationPlan,
    InternshipDemand,
    InternshipType,
    School,
    Subject,
    Teacher,
    TeacherAvailability,
    TeacherQualification,
    TeacherSubject,
    ZoneConstraint,
)
from internship_allocation.db.session import Base, get_db
from internship_allocation.main import app


TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture()
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database per test; the FastAPI dependency is overridden to use it."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            yield session

        app.dependency_overrides[get_db] = override_get_db
        yield session

    app.dependency_overrides.pop(get_db, None)
    await engine.dispose()


@pytest.fixture()
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


class Seed:
    """Reference-data builders. Every helper commits, so a service rollback never drops seeded rows."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self._n = 0

    def _next(self) -> int:
        self._n += 1
        return self._n

    async def _add(self, obj):
        self.db.add(obj)
        await self.db.commit()
        return obj

    async def year(
        self,
        total_credit_hours: int = 10,
        elementary_school_hours: int = 2,
        middle_school_hours: int = 3,
        is_locked: bool = False,
    ) -> AcademicYear:
        return await self._add(
            AcademicYear(
                year_name=f"2025/{self._next()}",
                total_credit_hours=total_credit_hours,
                elementary_school_hours=elementary_school_hours,
                middle_school_hours=middle_school_hours,
                is_locked=is_locked,
            )
        )

    async def school(self, school_type: str = "PRIMARY", zone_number: int = 1) -> School:
        return await self._add(
            School(school_name=f"School {self._next()}", school_type=school_type, zone_number=zone_number)
        )

    async def subject(self, subject_code: Optional[str] = None, is_active: bool = True) -> Subject:
        n = self._next()
        return await self._add(
            Subject(subject_code=subject_code or f"S{n:03d}", subject_title=f"Subject {n}", is_active=is_active)
        )

    async def internship_type(self, semester: Optional[int] = 1) -> InternshipType:
        n = self._next()
        return await self._add(InternshipType(internship_code=f"IT{n}", full_name=f"Internship {n}", semester=semester))

    async def zone(self, zone_number: int, internship_type: InternshipType, is_allowed: bool = True) -> ZoneConstraint:
        return await self._add(
            ZoneConstraint(zone_number=zone_number, internship_type_id=internship_type.id, is_allowed=is_allowed)
        )

    async def teacher(self, school: School, employment_status: str = "ACTIVE") -> Teacher:
        n = self._next()
        return await self._add(
            Teacher(
                school_id=school.id,
                first_name="Teacher",
                last_name=str(n),
                email=f"teacher{n}@example.com",
                employment_status=employment_status,
            )
        )

    async def qualification(self, teacher: Teacher, subject: Subject) -> TeacherQualification:
        return await self._add(TeacherQualification(teacher_id=teacher.id, subject_id=subject.id))

    async def teacher_subject(
        self, teacher: Teacher, subject: Subject, year: AcademicYear, availability_status: str = "AVAILABLE"
    ) -> TeacherSubject:
        return await self._add(
            TeacherSubject(
                academic_year_id=year.id,
                teacher_id=teacher.id,
                subject_id=subject.id,
                availability_status=availability_status,
            )
        )

    async def availability(
        self,
        teacher: Teacher,
        year: AcademicYear,
        internship_type: InternshipType,
        is_available: bool = True,
        status: str = "AVAILABLE",
    ) -> TeacherAvailability:
        return await self._add(
            TeacherAvailability(
                teacher_id=teacher.id,
                academic_year_id=year.id,
                internship_type_id=internship_type.id,
                is_available=is_available,
                status=status,
            )
        )

    async def eligible_teacher(
        self, school: School, subject: Subject, year: AcademicYear, internship_type: InternshipType
    ) -> Teacher:
        """Active teacher qualified for the subject and available for the internship type."""
        teacher = await self.teacher(school)
        await self.qualification(teacher, subject)
        await self.availability(teacher, year, internship_type)
        return teacher

    async def demand(
        self,
        year: AcademicYear,
        internship_type: InternshipType,
        subject: Subject,
        required_teachers: int = 1,
        school_type: str = "PRIMARY",
        student_count: Optional[int] = None,
    ) -> InternshipDemand:
        return await self._add(
            InternshipDemand(
                academic_year_id=year.id,
                internship_type_id=internship_type.id,
                subject_id=subject.id,
                school_type=school_type,
                required_teachers=required_teachers,
                student_count=student_count,
            )
        )

    async def plan(
        self,
        year: AcademicYear,
        plan_version: str = "1.0",
        status: str = "DRAFT",
        is_current: bool = False,
    ) -> AllocationPlan:
        return await self._add(
            AllocationPlan(
                academic_year_id=year.id,
                plan_name=f"Plan {plan_version}",
                plan_version=plan_version,
                status=status,
                is_current=is_current,
            )
        )


@pytest.fixture()
async def seed(db_session: AsyncSession) -> Seed:
    return Seed(db_session)
