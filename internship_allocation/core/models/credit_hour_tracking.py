import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID

from internship_allocation.db.session import Base


class CreditHourTracking(Base):
    """
    Per teacher and year workload ledger. Derived state: always recomputed from the
    live (non-cancelled) assignments, never incremented in place.
    """

    __tablename__ = "credit_hour_tracking"
    __table_args__ = (
        UniqueConstraint("teacher_id", "academic_year_id", name="uq_credit_hour_teacher_year"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    teacher_id = Column(UUID(as_uuid=True), ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False, index=True)
    academic_year_id = Column(
        UUID(as_uuid=True),
        ForeignKey("academic_years.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    assignments_count = Column(Integer, nullable=False, default=0)
    credit_hours_allocated = Column(Float, nullable=False, default=0.0)
    credit_balance = Column(Float, nullable=False, default=0.0)  # negative = over-allocated
    notes = Column(String(1000), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
