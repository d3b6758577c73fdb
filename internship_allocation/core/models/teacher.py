"""
Teacher and the per-teacher rows the eligibility filter joins over:
subject qualifications and year-scoped availability per internship type.
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from internship_allocation.db.session import Base


class Teacher(Base):
    __tablename__ = "teachers"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    school_id = Column(UUID(as_uuid=True), ForeignKey("schools.id"), nullable=False, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    employment_status = Column(String(20), nullable=False, default="ACTIVE", index=True)
    is_part_time = Column(Boolean, nullable=False, default=False)
    usage_cycle = Column(String(20), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    school = relationship("School")


class TeacherQualification(Base):
    __tablename__ = "teacher_qualifications"
    __table_args__ = (
        UniqueConstraint("teacher_id", "subject_id", name="uq_teacher_qualification"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    teacher_id = Column(UUID(as_uuid=True), ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False, index=True)
    subject_id = Column(UUID(as_uuid=True), ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False)
    is_main_subject = Column(Boolean, nullable=False, default=False)


class TeacherAvailability(Base):
    __tablename__ = "teacher_availabilities"
    __table_args__ = (
        UniqueConstraint(
            "teacher_id", "academic_year_id", "internship_type_id",
            name="uq_teacher_availability_year_internship",
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    teacher_id = Column(UUID(as_uuid=True), ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False, index=True)
    academic_year_id = Column(
        UUID(as_uuid=True),
        ForeignKey("academic_years.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    internship_type_id = Column(UUID(as_uuid=True), ForeignKey("internship_types.id"), nullable=False)
    is_available = Column(Boolean, nullable=False)
    status = Column(String(20), nullable=False, default="AVAILABLE")
    preference_rank = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
