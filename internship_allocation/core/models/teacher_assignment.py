"""A teacher supervising one internship type / subject within an allocation plan."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID

from internship_allocation.db.session import Base


class TeacherAssignment(Base):
    __tablename__ = "teacher_assignments"
    __table_args__ = (
        UniqueConstraint(
            "plan_id", "teacher_id", "internship_type_id", "subject_id",
            name="uq_teacher_assignment_plan_teacher_internship_subject",
        ),
        CheckConstraint("student_group_size >= 1", name="ck_teacher_assignment_group_size"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    plan_id = Column(
        UUID(as_uuid=True),
        ForeignKey("allocation_plans.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    teacher_id = Column(UUID(as_uuid=True), ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False, index=True)
    internship_type_id = Column(UUID(as_uuid=True), ForeignKey("internship_types.id"), nullable=False)
    subject_id = Column(UUID(as_uuid=True), ForeignKey("subjects.id"), nullable=False)
    student_group_size = Column(Integer, nullable=False, default=1)
    assignment_status = Column(String(20), nullable=False, default="PLANNED")  # PLANNED | CONFIRMED | CANCELLED
    is_manual_override = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=True)
    assigned_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
