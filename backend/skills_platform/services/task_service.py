"""
Skills Platform Backend — Task Service
========================================

What:  Task listings for students and teachers, task creation and the
       active/cancelled status switch.

Visibility:
    A student sees every task of their school (cancelled ones included, so
    a submitted answer never loses its task) and only their own submission
    state for each. A teacher sees their own tasks with submission counts.
"""

import logging
from collections import defaultdict
from typing import Dict, List
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from skills_platform.exceptions import DatabaseError, ForbiddenError, NotFoundError
from skills_platform.models import Submission, Task, User
from skills_platform.models.common import utcnow
from skills_platform.models.submission import (
    SUBMISSION_GRADED,
    SUBMISSION_PENDING,
    SUBMISSION_SUBMITTED,
)
from skills_platform.models.task import TASK_ACTIVE
from skills_platform.models.user import ROLE_TEACHER
from skills_platform.schemas.task import (
    StudentTaskOut,
    TaskCreate,
    TaskOut,
    TeacherName,
    TeacherTaskOut,
)

logger = logging.getLogger(__name__)


def _task_fields(task: Task) -> dict:
    return {
        "id": task.id,
        "teacher_id": task.teacher_id,
        "school_id": task.school_id,
        "title": task.title,
        "description": task.description,
        "questions": task.questions or [],
        "due_date": task.due_date,
        "status": task.status,
        "created_at": task.created_at,
        "updated_at": task.updated_at,
    }


def task_out(task: Task) -> TaskOut:
    return TaskOut(**_task_fields(task))


class TaskService:

    async def list_for_student(self, db: AsyncSession, student_id: UUID) -> List[StudentTaskOut]:
        """
        Tasks of the student's school, newest first.

        Query plan:
            1. users by primary key → the student's school
            2. tasks of that school ordered by created_at DESC
               (idx_tasks_school_created), teachers loaded in one IN query
            3. the student's own submissions for those tasks

        Raises:
            NotFoundError: The student does not exist (→ 404)
        """
        try:
            student = await db.get(User, student_id)
            if student is None:
                raise NotFoundError(resource="student", resource_id=str(student_id))

            result = await db.execute(
                select(Task)
                .options(selectinload(Task.teacher))
                .where(Task.school_id == student.school_id)
                .order_by(Task.created_at.desc())
            )
            tasks = list(result.scalars().all())

            own: Dict[UUID, Submission] = {}
            if tasks:
                result = await db.execute(
                    select(Submission).where(
                        Submission.student_id == student_id,
                        Submission.task_id.in_([t.id for t in tasks]),
                    )
                )
                own = {s.task_id: s for s in result.scalars().all()}
        except SQLAlchemyError as e:
            logger.error("Database error listing tasks for student %s: %s", student_id, str(e))
            raise DatabaseError(context={"student_id": str(student_id)}) from e

        items = []
        for task in tasks:
            submission = own.get(task.id)
            items.append(
                StudentTaskOut(
                    **_task_fields(task),
                    teacher=TeacherName(full_name=task.teacher.full_name) if task.teacher else None,
                    submission_status=submission.status if submission else SUBMISSION_PENDING,
                    submission_id=submission.id if submission else None,
                )
            )
        return items

    async def list_for_teacher(self, db: AsyncSession, teacher_id: UUID) -> List[TeacherTaskOut]:
        """
        Tasks created by the teacher, newest first, with submission counts.

        Counts come from one GROUP BY (task_id, status) query rather than
        loading every submission row.
        """
        try:
            result = await db.execute(
                select(Task)
                .where(Task.teacher_id == teacher_id)
                .order_by(Task.created_at.desc())
            )
            tasks = list(result.scalars().all())

            counts: Dict[UUID, Dict[str, int]] = defaultdict(dict)
            if tasks:
                result = await db.execute(
                    select(Submission.task_id, Submission.status, func.count(Submission.id))
                    .where(Submission.task_id.in_([t.id for t in tasks]))
                    .group_by(Submission.task_id, Submission.status)
                )
                for task_id, status, count in result.all():
                    counts[task_id][status] = count
        except SQLAlchemyError as e:
            logger.error("Database error listing tasks for teacher %s: %s", teacher_id, str(e))
            raise DatabaseError(context={"teacher_id": str(teacher_id)}) from e

        items = []
        for task in tasks:
            by_status = counts.get(task.id, {})
            items.append(
                TeacherTaskOut(
                    **_task_fields(task),
                    total_submissions=sum(by_status.values()),
                    graded=by_status.get(SUBMISSION_GRADED, 0),
                    pending=by_status.get(SUBMISSION_SUBMITTED, 0),
                )
            )
        return items

    async def create_task(self, db: AsyncSession, data: TaskCreate) -> TaskOut:
        """
        Raises:
            NotFoundError: The teacher does not exist (→ 404)
            ForbiddenError: The user is not a teacher (→ 403)
        """
        try:
            teacher = await db.get(User, data.teacher_id)
            if teacher is None:
                raise NotFoundError(resource="teacher", resource_id=str(data.teacher_id))
            if teacher.role != ROLE_TEACHER:
                raise ForbiddenError(
                    "Only teachers can create tasks",
                    context={"user_id": str(teacher.id), "role": teacher.role},
                )

            task = Task(
                teacher_id=teacher.id,
                school_id=teacher.school_id,
                title=data.title,
                description=data.description,
                questions=data.questions or [],
                due_date=data.due_date,
                status=TASK_ACTIVE,
                created_at=utcnow(),
            )
            db.add(task)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error creating task: %s", str(e))
            raise DatabaseError(context={"operation": "create_task"}) from e

        logger.info("Task created: %s by teacher %s", task.id, teacher.id)
        return task_out(task)

    async def update_status(self, db: AsyncSession, task_id: UUID, status: str) -> TaskOut:
        """
        Raises:
            NotFoundError: The task does not exist (→ 404)
        """
        try:
            task = await db.get(Task, task_id)
            if task is None:
                raise NotFoundError(resource="task", resource_id=str(task_id))

            task.status = status
            task.updated_at = utcnow()
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error updating task %s: %s", task_id, str(e))
            raise DatabaseError(context={"task_id": str(task_id)}) from e

        logger.info("Task %s status set to %s", task_id, status)
        return task_out(task)


task_service = TaskService()
