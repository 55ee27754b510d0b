"""
Skills Platform Backend — Grading Service (AI Orchestrator)
=============================================================

What:  The four AI operations: grade a submission, recommend a study plan,
       analyze overall performance, evaluate a task's quality.
How:   Load rows → build a prompt → LLMService.generate_json() → persist
       (grading and recommendations only) → return the parsed object.
Who:   Called by routes/ai.py.

Orchestration Flow (POST /api/ai/grade-submission):
    ┌────────────┐    ┌──────────┐    ┌──────────────┐    ┌──────────────────┐
    │ Submission │───▶│  Prompt  │───▶│ Gemini reply │───▶│ Assessment +     │
    │ + Task     │    │          │    │ → JSON       │    │ SkillAssessments │
    └────────────┘    └──────────┘    └──────────────┘    └──────────────────┘

    All writes are flushed into the request's session and committed
    together by get_db_session; a failure part-way leaves nothing behind.

Every operation first checks that a model is configured (503 otherwise).
"""

import logging
import math
from numbers import Number
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from skills_platform.exceptions import (
    AIUnavailableError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from skills_platform.models import (
    Assessment,
    Recommendation,
    Skill,
    SkillAssessment,
    Submission,
    Task,
    User,
)
from skills_platform.models.common import utcnow
from skills_platform.models.recommendation import PRIORITY_HIGH, PRIORITY_LOW, PRIORITY_MEDIUM
from skills_platform.models.submission import SUBMISSION_GRADED
from skills_platform.schemas.ai import AnalysisEnvelope
from skills_platform.services import prompts
from skills_platform.services.gemini_service import gemini_service
from skills_platform.services.llm_base import LLMService
from skills_platform.services.performance_service import (
    ANALYSIS_WEAK_THRESHOLD,
    WEAKNESS_THRESHOLD,
    average_skill_scores,
)

logger = logging.getLogger(__name__)

# Used when the model leaves a skill out or returns something non-numeric
DEFAULT_SKILL_SCORE = 75.0

HIGH_PRIORITY_BELOW = 60
MEDIUM_PRIORITY_BELOW = 75


def excellent_performance() -> Dict[str, Any]:
    """Returned instead of a model call when no skill is weak."""
    return {
        "diagnosis": "Excellent performance! No clear weaknesses",
        "activities": ["Keep up the excellent work", "Help your classmates"],
        "resources": [],
        "week_plan": [],
        "month_plan": [],
    }


def as_score(value: Any) -> Optional[float]:
    """Finite numbers (and numeric strings) as float; anything else as None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, Number):
        score = float(value)
    elif isinstance(value, str):
        try:
            score = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return score if math.isfinite(score) else None


def priority_for(lowest_score: float) -> str:
    if lowest_score < HIGH_PRIORITY_BELOW:
        return PRIORITY_HIGH
    if lowest_score < MEDIUM_PRIORITY_BELOW:
        return PRIORITY_MEDIUM
    return PRIORITY_LOW


class GradingService:
    """
    Error Handling Strategy:
        Missing rows → NotFoundError. Model failures propagate as raised by
        the LLM service (LLMServiceError, CircuitBreakerOpenError,
        AIResponseFormatError). SQLAlchemy errors are wrapped in
        DatabaseError.
    """

    def __init__(self, llm: LLMService):
        self.llm = llm

    def _require_ai(self) -> None:
        if not self.llm.enabled:
            raise AIUnavailableError()

    async def grade_submission(self, db: AsyncSession, submission_id: UUID) -> Dict[str, Any]:
        """
        Grades one submission and stores the result.

        Persists:
            - one Assessment (overall_score, feedback, ai_analysis = the
              whole parsed reply)
            - one SkillAssessment per skill in the skills table, read from
              the reply key skill_key(name_en), DEFAULT_SKILL_SCORE when
              missing or non-numeric
            - submission.status = graded

        Returns:
            The parsed model reply, unchanged.

        Raises:
            AIUnavailableError: No model configured (→ 503)
            NotFoundError: Submission or its task missing (→ 404)
        """
        self._require_ai()

        try:
            result = await db.execute(
                select(Submission)
                .options(selectinload(Submission.task))
                .where(Submission.id == submission_id)
            )
            submission = result.scalar_one_or_none()
            if submission is None or submission.task is None:
                raise NotFoundError(resource="submission", resource_id=str(submission_id))

            result = await db.execute(select(Skill).order_by(Skill.name_en))
            skills = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error loading submission %s: %s", submission_id, str(e))
            raise DatabaseError(context={"submission_id": str(submission_id)}) from e

        task = submission.task
        grading = await self.llm.generate_json(
            prompts.grading_prompt(
                title=task.title,
                description=task.description,
                questions=task.questions or [],
                content=submission.content,
                skills=[(s.name_en, s.name_ar) for s in skills],
            )
        )

        feedback = grading.get("feedback")
        try:
            assessment = Assessment(
                submission_id=submission.id,
                overall_score=as_score(grading.get("overall_score")),
                feedback=str(feedback) if feedback is not None else None,
                ai_analysis=grading,
                created_at=utcnow(),
            )
            db.add(assessment)
            await db.flush()

            for skill in skills:
                score = as_score(grading.get(prompts.skill_key(skill.name_en)))
                db.add(
                    SkillAssessment(
                        assessment_id=assessment.id,
                        skill_id=skill.id,
                        score=DEFAULT_SKILL_SCORE if score is None else score,
                    )
                )

            submission.status = SUBMISSION_GRADED
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error saving grading of %s: %s", submission_id, str(e))
            raise DatabaseError(context={"submission_id": str(submission_id)}) from e

        logger.info(
            "Submission %s graded: overall=%s, %d skill scores",
            submission_id,
            assessment.overall_score,
            len(skills),
        )
        return grading

    async def recommendations(
        self, db: AsyncSession, student_id: UUID, task_id: UUID
    ) -> Dict[str, Any]:
        """
        Study plan for the skills the student scored below 70 on in their
        first assessment for the task.

        No weak skills → excellent_performance(), no model call, nothing
        stored. Otherwise one Recommendation row is stored, tied to the
        weakest skill, with priority from its score.

        Raises:
            AIUnavailableError: No model configured (→ 503)
            NotFoundError: The student has no submission for the task (→ 404)
        """
        self._require_ai()

        try:
            result = await db.execute(
                select(Submission)
                .options(
                    selectinload(Submission.assessments)
                    .selectinload(Assessment.skill_assessments)
                    .selectinload(SkillAssessment.skill)
                )
                .where(Submission.student_id == student_id, Submission.task_id == task_id)
            )
            submission = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error loading submission for recommendations: %s", str(e))
            raise DatabaseError(context={"student_id": str(student_id)}) from e

        if submission is None:
            raise NotFoundError(
                resource="submission",
                context={"student_id": str(student_id), "task_id": str(task_id)},
            )

        weak: List[SkillAssessment] = []
        if submission.assessments:
            weak = [
                sa
                for sa in submission.assessments[0].skill_assessments
                if sa.score < WEAKNESS_THRESHOLD
            ]

        if not weak:
            logger.info("No weak skills for student %s on task %s", student_id, task_id)
            return excellent_performance()

        recommendations = await self.llm.generate_json(
            prompts.recommendations_prompt(
                [(sa.skill.name_en, sa.skill.name_ar, sa.score) for sa in weak]
            )
        )

        weakest = min(weak, key=lambda sa: sa.score)
        resources = recommendations.get("resources")
        try:
            db.add(
                Recommendation(
                    student_id=student_id,
                    task_id=task_id,
                    skill_id=weakest.skill_id,
                    recommendation_text=str(recommendations.get("diagnosis") or ""),
                    resources=resources if isinstance(resources, list) else [],
                    priority=priority_for(weakest.score),
                    created_at=utcnow(),
                )
            )
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error saving recommendation: %s", str(e))
            raise DatabaseError(context={"student_id": str(student_id)}) from e

        logger.info(
            "Recommendations generated for student %s (%d weak skills, priority=%s)",
            student_id,
            len(weak),
            priority_for(weakest.score),
        )
        return recommendations

    async def analyze_performance(self, db: AsyncSession, student_id: UUID) -> AnalysisEnvelope:
        """
        Whole-history analysis. Skills averaging below 75 are weak.

        Raises:
            AIUnavailableError: No model configured (→ 503)
            NotFoundError: The student does not exist (→ 404)
        """
        self._require_ai()

        try:
            if await db.get(User, student_id) is None:
                raise NotFoundError(resource="student", resource_id=str(student_id))

            result = await db.execute(
                select(Assessment)
                .join(Assessment.submission)
                .options(
                    selectinload(Assessment.skill_assessments).selectinload(SkillAssessment.skill)
                )
                .where(Submission.student_id == student_id)
                .order_by(Assessment.created_at)
            )
            assessments = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error loading assessments of %s: %s", student_id, str(e))
            raise DatabaseError(context={"student_id": str(student_id)}) from e

        skill_scores = average_skill_scores(assessments)
        weak_skills = [name for name, avg in skill_scores.items() if avg < ANALYSIS_WEAK_THRESHOLD]

        analysis = await self.llm.generate_json(
            prompts.analysis_prompt(len(assessments), skill_scores, weak_skills)
        )
        return AnalysisEnvelope(
            analysis=analysis,
            skill_scores=skill_scores,
            weak_skills=weak_skills,
        )

    async def evaluate_task(
        self, db: AsyncSession, task_id: UUID, submission_id: Optional[UUID] = None
    ) -> Dict[str, Any]:
        """
        Rates a task against the JCSEE program evaluation standards
        (utility, feasibility, propriety, accuracy). A submission, when
        given, is included as a sample answer.

        Raises:
            AIUnavailableError: No model configured (→ 503)
            NotFoundError: Task or submission missing (→ 404)
            ValidationError: The submission belongs to another task (→ 400)
        """
        self._require_ai()

        try:
            task = await db.get(Task, task_id)
            if task is None:
                raise NotFoundError(resource="task", resource_id=str(task_id))

            submission = None
            if submission_id is not None:
                submission = await db.get(Submission, submission_id)
                if submission is None:
                    raise NotFoundError(resource="submission", resource_id=str(submission_id))
                if submission.task_id != task.id:
                    raise ValidationError(
                        "The submission does not belong to this task",
                        field="submissionId",
                    )
        except SQLAlchemyError as e:
            logger.error("Database error loading task %s: %s", task_id, str(e))
            raise DatabaseError(context={"task_id": str(task_id)}) from e

        evaluation = await self.llm.generate_json(
            prompts.evaluation_prompt(
                description=task.description,
                questions=task.questions or [],
                content=submission.content if submission else "",
            )
        )
        logger.info("Task %s evaluated", task_id)
        return evaluation


grading_service = GradingService(gemini_service)
