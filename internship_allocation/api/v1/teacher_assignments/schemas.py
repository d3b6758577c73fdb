from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from internship_allocation.core.enums import AssignmentStatus


class TeacherAssignmentCreate(BaseModel):
    """Manually assign a teacher. (plan, teacher, internship type, subject) must be unique."""

    teacher_id: UUID
    internship_type_id: UUID
    subject_id: UUID
    student_group_size: int = Field(1, ge=1)
    assignment_status: AssignmentStatus = AssignmentStatus.PLANNED
    is_manual_override: bool = False
    notes: Optional[str] = None


class TeacherAssignmentUpdate(BaseModel):
    student_group_size: Optional[int] = Field(None, ge=1)
    assignment_status: Optional[AssignmentStatus] = None
    is_manual_override: Optional[bool] = None
    notes: Optional[str] = None


class TeacherAssignmentResponse(BaseModel):
    id: UUID
    plan_id: UUID
    teacher_id: UUID
    internship_type_id: UUID
    subject_id: UUID
    student_group_size: int
    assignment_status: AssignmentStatus
    is_manual_override: bool
    notes: Optional[str] = None
    assigned_at: datetime
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
