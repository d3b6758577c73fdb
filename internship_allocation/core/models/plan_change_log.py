"""
Append-only change history for allocation plans and their assignments.
Written by the lifecycle and assignment services on every mutation, never read back by them.
"""

import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID

from internship_allocation.db.session import Base


class PlanChangeLog(Base):
    __tablename__ = "plan_change_logs"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    plan_id = Column(
        UUID(as_uuid=True),
        ForeignKey("allocation_plans.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    change_type = Column(String(20), nullable=False)  # CREATE | UPDATE | DELETE | STATUS_CHANGE
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(UUID(as_uuid=True), nullable=False)
    old_value = Column(JSON, nullable=True)
    new_value = Column(JSON, nullable=True)
    performed_by = Column(UUID(as_uuid=True), nullable=True)
    reason = Column(Text, nullable=True)
    event_timestamp = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
