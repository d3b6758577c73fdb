"""How many teachers a year needs for one internship type / subject / school type combination."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.dialects.postgresql import UUID

from internship_allocation.db.session import Base


class InternshipDemand(Base):
    __tablename__ = "internship_demands"
    __table_args__ = (
        CheckConstraint("required_teachers >= 0", name="ck_internship_demand_required_non_negative"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    academic_year_id = Column(
        UUID(as_uuid=True),
        ForeignKey("academic_years.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    internship_type_id = Column(UUID(as_uuid=True), ForeignKey("internship_types.id"), nullable=False)
    subject_id = Column(UUID(as_uuid=True), ForeignKey("subjects.id"), nullable=False)
    school_type = Column(String(20), nullable=False)  # PRIMARY | MIDDLE
    required_teachers = Column(Integer, nullable=False)
    student_count = Column(Integer, nullable=True)
    is_forecasted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
