import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, Text, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from internship_allocation.db.session import Base


class AllocationPlan(Base):
    """
    Versioned allocation plan of an academic year.
    Status moves forward only: DRAFT -> IN_REVIEW -> APPROVED -> ARCHIVED. ARCHIVED plans are read-only.
    At most one plan per year has is_current = true (backed by a partial unique index).
    """

    __tablename__ = "allocation_plans"
    __table_args__ = (
        UniqueConstraint("academic_year_id", "plan_version", name="uq_allocation_plan_year_version"),
        Index(
            "uq_allocation_plan_current_per_year",
            "academic_year_id",
            unique=True,
            postgresql_where=text("is_current = true"),
            sqlite_where=text("is_current = 1"),
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    academic_year_id = Column(
        UUID(as_uuid=True),
        ForeignKey("academic_years.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    plan_name = Column(String(255), nullable=False)
    plan_version = Column(String(100), nullable=False)
    status = Column(String(20), nullable=False, default="DRAFT", index=True)
    is_current = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=True)
    created_by = Column(UUID(as_uuid=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    academic_year = relationship("AcademicYear")
