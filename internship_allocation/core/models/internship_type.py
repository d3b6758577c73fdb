import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.dialects.postgresql import UUID

from internship_allocation.db.session import Base


class InternshipType(Base):
    """Internship track catalog entry (e.g. SFP, ZSP, PDP1, PDP2)."""

    __tablename__ = "internship_types"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    internship_code = Column(String(50), nullable=False, unique=True)
    full_name = Column(String(255), nullable=False)
    semester = Column(Integer, nullable=True)  # ordinal; demands are processed in ascending semester
    is_subject_specific = Column(Boolean, nullable=False, default=False)
    priority_order = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
