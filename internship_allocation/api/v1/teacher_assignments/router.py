from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from internship_allocation.api.dependencies import get_actor_id
from internship_allocation.core.enums import AssignmentStatus
from internship_allocation.core.exceptions import ServiceError
from internship_allocation.db.session import get_db

from .schemas import TeacherAssignmentCreate, TeacherAssignmentResponse, TeacherAssignmentUpdate
from . import service

router = APIRouter(prefix="/api/v1/allocation-plans/{plan_id}/assignments", tags=["teacher-assignments"])


@router.post("", response_model=TeacherAssignmentResponse, status_code=status.HTTP_201_CREATED)
async def create_assignment(
    plan_id: UUID,
    payload: TeacherAssignmentCreate,
    db: AsyncSession = Depends(get_db),
    actor_id: Optional[UUID] = Depends(get_actor_id),
) -> TeacherAssignmentResponse:
    try:
        return await service.create_assignment(db, plan_id, payload, performed_by=actor_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[TeacherAssignmentResponse])
async def list_assignments(
    plan_id: UUID,
    teacher_id: Optional[UUID] = Query(None),
    internship_type_id: Optional[UUID] = Query(None),
    subject_id: Optional[UUID] = Query(None),
    status_filter: Optional[AssignmentStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
) -> List[TeacherAssignmentResponse]:
    return await service.list_assignments(
        db,
        plan_id,
        teacher_id=teacher_id,
        internship_type_id=internship_type_id,
        subject_id=subject_id,
        status_filter=status_filter,
    )


@router.get("/{assignment_id}", response_model=TeacherAssignmentResponse)
async def get_assignment(
    plan_id: UUID,
    assignment_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> TeacherAssignmentResponse:
    ta = await service.get_assignment(db, plan_id, assignment_id)
    if not ta:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Teacher assignment not found")
    return ta


@router.patch("/{assignment_id}", response_model=TeacherAssignmentResponse)
async def update_assignment(
    plan_id: UUID,
    assignment_id: UUID,
    payload: TeacherAssignmentUpdate,
    db: AsyncSession = Depends(get_db),
    actor_id: Optional[UUID] = Depends(get_actor_id),
) -> TeacherAssignmentResponse:
    """Update group size, status, override flag or notes. Set status CANCELLED to release the teacher."""
    try:
        return await service.update_assignment(db, plan_id, assignment_id, payload, performed_by=actor_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_assignment(
    plan_id: UUID,
    assignment_id: UUID,
    db: AsyncSession = Depends(get_db),
    actor_id: Optional[UUID] = Depends(get_actor_id),
) -> None:
    try:
        await service.delete_assignment(db, plan_id, assignment_id, performed_by=actor_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
