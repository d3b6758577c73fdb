import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID

from internship_allocation.db.session import Base


class ZoneConstraint(Base):
    """
    Which geographic zones may supply teachers for an internship type.
    Closed world: no row for a (zone, type) pair means not allowed.
    """

    __tablename__ = "zone_constraints"
    __table_args__ = (
        UniqueConstraint("zone_number", "internship_type_id", name="uq_zone_internship_type"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    zone_number = Column(Integer, nullable=False)
    internship_type_id = Column(
        UUID(as_uuid=True),
        ForeignKey("internship_types.id", ondelete="CASCADE"),
        nullable=False,
    )
    is_allowed = Column(Boolean, nullable=False, default=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
