"""
Skills Platform Backend — Task Routes
=======================================

What:  Task listings per student and per teacher, creation, and the
       active/cancelled status switch.
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from skills_platform.database import get_db_session
from skills_platform.schemas.common import ErrorResponse
from skills_platform.schemas.task import (
    StudentTaskListEnvelope,
    TaskCreate,
    TaskEnvelope,
    TaskStatusUpdate,
    TeacherTaskListEnvelope,
)
from skills_platform.services.task_service import task_service

router = APIRouter(prefix="/api/tasks", tags=["Tasks"])


@router.get(
    "/student/{student_id}",
    response_model=StudentTaskListEnvelope,
    responses={404: {"description": "Student not found", "model": ErrorResponse}},
    summary="Tasks visible to a student",
)
async def list_student_tasks(
    student_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> StudentTaskListEnvelope:
    """
    Every task of the student's school, newest first, with the student's
    own submission_status ("pending" when not answered) and submission_id.
    """
    tasks = await task_service.list_for_student(db, student_id)
    return StudentTaskListEnvelope(tasks=tasks)


@router.get(
    "/teacher/{teacher_id}",
    response_model=TeacherTaskListEnvelope,
    summary="Tasks created by a teacher, with submission counts",
)
async def list_teacher_tasks(
    teacher_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> TeacherTaskListEnvelope:
    tasks = await task_service.list_for_teacher(db, teacher_id)
    return TeacherTaskListEnvelope(tasks=tasks)


@router.post(
    "",
    response_model=TaskEnvelope,
    responses={
        400: {"description": "Missing or invalid field", "model": ErrorResponse},
        403: {"description": "User is not a teacher", "model": ErrorResponse},
        404: {"description": "Teacher not found", "model": ErrorResponse},
    },
    summary="Create a task",
)
async def create_task(
    data: TaskCreate,
    db: AsyncSession = Depends(get_db_session),
) -> TaskEnvelope:
    task = await task_service.create_task(db, data)
    return TaskEnvelope(task=task)


@router.patch(
    "/{task_id}",
    response_model=TaskEnvelope,
    responses={
        400: {"description": "Status must be active or cancelled", "model": ErrorResponse},
        404: {"description": "Task not found", "model": ErrorResponse},
    },
    summary="Activate or cancel a task",
)
async def update_task_status(
    task_id: UUID,
    data: TaskStatusUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> TaskEnvelope:
    task = await task_service.update_status(db, task_id, data.status)
    return TaskEnvelope(task=task)
