"""
Skills Platform Backend — Submission Service
==============================================

What:  Stores student answers and lists them for the teacher's grading view.

Constraint:
    One submission per (task, student). Checked before inserting; the
    uq_submissions_task_student constraint catches concurrent duplicates,
    which surface as IntegrityError on flush and get the same 400.
"""

import logging
from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from skills_platform.exceptions import DatabaseError, NotFoundError, ValidationError
from skills_platform.models import Assessment, SkillAssessment, Submission, Task, User
from skills_platform.models.common import utcnow
from skills_platform.models.submission import SUBMISSION_SUBMITTED
from skills_platform.schemas.submission import (
    AssessmentOut,
    SkillNames,
    SkillScoreOut,
    StudentBrief,
    SubmissionCreate,
    SubmissionDetailOut,
    SubmissionOut,
)

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "This task has already been submitted"


def _submission_fields(submission: Submission) -> dict:
    return {
        "id": submission.id,
        "task_id": submission.task_id,
        "student_id": submission.student_id,
        "content": submission.content,
        "files": submission.files or [],
        "status": submission.status,
        "submitted_at": submission.submitted_at,
    }


def assessment_out(assessment: Assessment) -> AssessmentOut:
    return AssessmentOut(
        overall_score=assessment.overall_score,
        feedback=assessment.feedback,
        skill_assessments=[
            SkillScoreOut(
                score=sa.score,
                skills=SkillNames(name_en=sa.skill.name_en, name_ar=sa.skill.name_ar),
            )
            for sa in assessment.skill_assessments
        ],
    )


class SubmissionService:

    async def create_submission(self, db: AsyncSession, data: SubmissionCreate) -> SubmissionOut:
        """
        Raises:
            NotFoundError: Task or student does not exist (→ 404)
            ValidationError: The student already answered this task (→ 400)
        """
        try:
            if await db.get(Task, data.task_id) is None:
                raise NotFoundError(resource="task", resource_id=str(data.task_id))
            if await db.get(User, data.student_id) is None:
                raise NotFoundError(resource="student", resource_id=str(data.student_id))

            result = await db.execute(
                select(Submission.id).where(
                    Submission.task_id == data.task_id,
                    Submission.student_id == data.student_id,
                )
            )
            if result.scalar_one_or_none() is not None:
                raise ValidationError(DUPLICATE_MESSAGE)

            submission = Submission(
                task_id=data.task_id,
                student_id=data.student_id,
                content=data.content,
                files=data.files or [],
                status=SUBMISSION_SUBMITTED,
                submitted_at=utcnow(),
            )
            db.add(submission)
            await db.flush()
        except IntegrityError as e:
            raise ValidationError(DUPLICATE_MESSAGE) from e
        except SQLAlchemyError as e:
            logger.error("Database error creating submission: %s", str(e))
            raise DatabaseError(context={"operation": "create_submission"}) from e

        logger.info(
            "Submission %s stored for task %s by student %s",
            submission.id,
            submission.task_id,
            submission.student_id,
        )
        return SubmissionOut(**_submission_fields(submission))

    async def list_for_task(self, db: AsyncSession, task_id: UUID) -> List[SubmissionDetailOut]:
        """
        Every submission of a task, newest first, with the student and the
        full assessment tree (assessments → skill scores → skill names).
        An unknown task yields an empty list.
        """
        try:
            result = await db.execute(
                select(Submission)
                .options(
                    selectinload(Submission.student),
                    selectinload(Submission.assessments)
                    .selectinload(Assessment.skill_assessments)
                    .selectinload(SkillAssessment.skill),
                )
                .where(Submission.task_id == task_id)
                .order_by(Submission.submitted_at.desc())
            )
            submissions = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing submissions of task %s: %s", task_id, str(e))
            raise DatabaseError(context={"task_id": str(task_id)}) from e

        return [
            SubmissionDetailOut(
                **_submission_fields(s),
                student=(
                    StudentBrief(id=s.student.id, full_name=s.student.full_name, email=s.student.email)
                    if s.student is not None
                    else None
                ),
                assessments=[assessment_out(a) for a in s.assessments],
            )
            for s in submissions
        ]


submission_service = SubmissionService()
