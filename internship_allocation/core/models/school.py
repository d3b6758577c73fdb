import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.dialects.postgresql import UUID

from internship_allocation.db.session import Base


class School(Base):
    """Home school of a teacher. school_type drives hours per assignment, zone_number drives zone eligibility."""

    __tablename__ = "schools"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    school_name = Column(String(255), nullable=False, unique=True)
    school_type = Column(String(20), nullable=False)  # PRIMARY | MIDDLE
    zone_number = Column(Integer, nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
