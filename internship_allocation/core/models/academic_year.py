import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.dialects.postgresql import UUID

from internship_allocation.db.session import Base


class AcademicYear(Base):
    """
    Academic year with its supervision credit-hour budgets.
    Locked years accept no new planning input (no allocation runs, no manual assignments).
    """

    __tablename__ = "academic_years"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    year_name = Column(String(50), nullable=False, unique=True)  # e.g. "2025/2026"
    total_credit_hours = Column(Integer, nullable=False)
    elementary_school_hours = Column(Integer, nullable=False)
    middle_school_hours = Column(Integer, nullable=False)
    budget_announcement_date = Column(DateTime(timezone=True), nullable=True)
    allocation_deadline = Column(DateTime(timezone=True), nullable=True)
    is_locked = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
