"""Submission routes: students answer a task, teachers list the answers."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from skills_platform.database import get_db_session
from skills_platform.schemas.common import ErrorResponse
from skills_platform.schemas.submission import (
    SubmissionCreate,
    SubmissionEnvelope,
    SubmissionListEnvelope,
)
from skills_platform.services.submission_service import submission_service

router = APIRouter(prefix="/api/submissions", tags=["Submissions"])


@router.post(
    "",
    response_model=SubmissionEnvelope,
    responses={
        400: {"description": "Missing field or task already submitted", "model": ErrorResponse},
        404: {"description": "Task or student not found", "model": ErrorResponse},
    },
    summary="Submit an answer to a task",
)
async def create_submission(
    data: SubmissionCreate,
    db: AsyncSession = Depends(get_db_session),
) -> SubmissionEnvelope:
    submission = await submission_service.create_submission(db, data)
    return SubmissionEnvelope(submission=submission)


@router.get(
    "/task/{task_id}",
    response_model=SubmissionListEnvelope,
    summary="All submissions of a task, with students and assessments",
)
async def list_task_submissions(
    task_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> SubmissionListEnvelope:
    submissions = await submission_service.list_for_task(db, task_id)
    return SubmissionListEnvelope(submissions=submissions)
