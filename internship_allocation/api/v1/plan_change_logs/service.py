"""
Change history for allocation plans and teacher assignments. Call on every successful mutation.
"""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from internship_allocation.core.enums import ChangeType
from internship_allocation.core.models import PlanChangeLog

ENTITY_ALLOCATION_PLAN = "ALLOCATION_PLAN"
ENTITY_TEACHER_ASSIGNMENT = "TEACHER_ASSIGNMENT"


async def log_plan_change(
    db: AsyncSession,
    plan_id: UUID,
    change_type: ChangeType,
    entity_type: str,
    entity_id: UUID,
    *,
    old_value: Optional[Dict[str, Any]] = None,
    new_value: Optional[Dict[str, Any]] = None,
    performed_by: Optional[UUID] = None,
    reason: Optional[str] = None,
) -> None:
    """Append one change log entry. Caller must commit, so the entry lands with the mutation it describes."""
    entry = PlanChangeLog(
        plan_id=plan_id,
        change_type=change_type.value,
        entity_type=entity_type,
        entity_id=entity_id,
        old_value=old_value,
        new_value=new_value,
        performed_by=performed_by,
        reason=reason,
        event_timestamp=datetime.utcnow(),
    )
    db.add(entry)
