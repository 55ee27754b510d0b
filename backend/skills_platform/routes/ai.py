"""
Skills Platform Backend — AI Routes
=====================================

What:  Gemini-backed grading, recommendations, performance analysis and
       JCSEE task evaluation.

Errors specific to these routes:
    503 ai_unavailable      no GEMINI_API_KEY configured
    503 llm_service_error   Gemini failed after retries
    503 service_unavailable circuit breaker open
    502 ai_response_invalid the reply held no parseable JSON object

Gemini calls take several seconds; the frontend shows a spinner.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from skills_platform.database import get_db_session
from skills_platform.schemas.ai import (
    AnalysisEnvelope,
    AnalyzePerformanceRequest,
    EvaluateTaskRequest,
    EvaluationEnvelope,
    GradeSubmissionRequest,
    GradingEnvelope,
    RecommendationsEnvelope,
    RecommendationsRequest,
)
from skills_platform.schemas.common import ErrorResponse
from skills_platform.services.grading_service import grading_service

router = APIRouter(prefix="/api/ai", tags=["AI"])

AI_ERRORS = {
    502: {"description": "Unparseable model reply", "model": ErrorResponse},
    503: {"description": "AI not configured or temporarily unavailable", "model": ErrorResponse},
}


@router.post(
    "/grade-submission",
    response_model=GradingEnvelope,
    responses={404: {"description": "Submission not found", "model": ErrorResponse}, **AI_ERRORS},
    summary="Grade a submission on the five skills",
)
async def grade_submission(
    data: GradeSubmissionRequest,
    db: AsyncSession = Depends(get_db_session),
) -> GradingEnvelope:
    grading = await grading_service.grade_submission(db, data.submission_id)
    return GradingEnvelope(grading=grading)


@router.post(
    "/recommendations",
    response_model=RecommendationsEnvelope,
    responses={404: {"description": "No submission for this task", "model": ErrorResponse}, **AI_ERRORS},
    summary="Study plan for the skills a student is weak in",
)
async def recommendations(
    data: RecommendationsRequest,
    db: AsyncSession = Depends(get_db_session),
) -> RecommendationsEnvelope:
    result = await grading_service.recommendations(db, data.student_id, data.task_id)
    return RecommendationsEnvelope(recommendations=result)


@router.post(
    "/analyze-performance",
    response_model=AnalysisEnvelope,
    responses={404: {"description": "Student not found", "model": ErrorResponse}, **AI_ERRORS},
    summary="AI analysis of a student's whole history",
)
async def analyze_performance(
    data: AnalyzePerformanceRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AnalysisEnvelope:
    return await grading_service.analyze_performance(db, data.student_id)


@router.post(
    "/evaluate-task",
    response_model=EvaluationEnvelope,
    responses={
        400: {"description": "Submission belongs to another task", "model": ErrorResponse},
        404: {"description": "Task or submission not found", "model": ErrorResponse},
        **AI_ERRORS,
    },
    summary="Rate a task against the JCSEE standards",
)
async def evaluate_task(
    data: EvaluateTaskRequest,
    db: AsyncSession = Depends(get_db_session),
) -> EvaluationEnvelope:
    evaluation = await grading_service.evaluate_task(db, data.task_id, data.submission_id)
    return EvaluationEnvelope(evaluation=evaluation)
