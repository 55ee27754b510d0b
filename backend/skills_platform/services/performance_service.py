"""
Skills Platform Backend — Performance Service
===============================================

What:  The student dashboard: overall average, per-skill averages and
       trends, score history, strengths and weaknesses.
How:   One query loads the student's graded submissions with their task
       titles and assessment trees; summarize_performance() does the rest
       in memory. It works on any objects with the ORM attribute names, so
       it is tested without a database.

Rules:
    - overall_average: mean of every assessment's overall_score, a missing
      score counting as 0; 0 when there are no assessments
    - skill average: mean of that skill's scores across all assessments
    - trend: compares the first and last score only; "stable" with fewer
      than two scores or when they are equal
    - strengths: average >= 80, weaknesses: average < 70, at most three
      each, in first-seen order
    - all averages rounded to one decimal place
"""

import logging
from typing import Dict, Iterable, List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from skills_platform.exceptions import DatabaseError
from skills_platform.models import Assessment, SkillAssessment, Submission
from skills_platform.models.submission import SUBMISSION_GRADED
from skills_platform.schemas.performance import (
    PerformancePoint,
    PerformanceResponse,
    SkillPerformance,
)

logger = logging.getLogger(__name__)

STRENGTH_THRESHOLD = 80
WEAKNESS_THRESHOLD = 70
HIGHLIGHT_LIMIT = 3

# Used by the AI analysis, which is stricter than the dashboard
ANALYSIS_WEAK_THRESHOLD = 75

DEFAULT_TASK_TITLE = "Task"


def _trend(scores: List[float]) -> str:
    # Equal first and last scores are stable, not down
    if len(scores) < 2 or scores[-1] == scores[0]:
        return "stable"
    return "up" if scores[-1] > scores[0] else "down"


def _mean(values: List[float]) -> float:
    return round(sum(values) / len(values), 1)


def summarize_performance(submissions: Iterable) -> PerformanceResponse:
    """
    Aggregates graded submissions, which must already be in submitted_at
    ascending order (trends depend on it).
    """
    submissions = list(submissions)

    overall_scores: List[float] = []
    # dicts keep insertion order, which gives first-seen skill order
    skill_scores: Dict[str, List[float]] = {}
    skill_names_ar: Dict[str, str] = {}
    history: List[PerformancePoint] = []

    for submission in submissions:
        for assessment in submission.assessments:
            overall_scores.append(float(assessment.overall_score or 0))
            for sa in assessment.skill_assessments:
                name = sa.skill.name_en
                skill_scores.setdefault(name, []).append(float(sa.score))
                skill_names_ar.setdefault(name, sa.skill.name_ar)

        first = submission.assessments[0] if submission.assessments else None
        history.append(
            PerformancePoint(
                date=submission.submitted_at.date().isoformat(),
                task=(submission.task.title if submission.task else None) or DEFAULT_TASK_TITLE,
                score=float(first.overall_score or 0) if first else 0,
            )
        )

    skills = [
        SkillPerformance(
            skill=name,
            skill_ar=skill_names_ar[name],
            average=_mean(scores),
            trend=_trend(scores),
        )
        for name, scores in skill_scores.items()
    ]

    return PerformanceResponse(
        overall_average=_mean(overall_scores) if overall_scores else 0,
        total_tasks=len(submissions),
        skills_performance=skills,
        performance_over_time=history,
        strengths=[s for s in skills if s.average >= STRENGTH_THRESHOLD][:HIGHLIGHT_LIMIT],
        weaknesses=[s for s in skills if s.average < WEAKNESS_THRESHOLD][:HIGHLIGHT_LIMIT],
    )


def average_skill_scores(assessments: Iterable) -> Dict[str, float]:
    """Mean score per English skill name across the given assessments."""
    scores: Dict[str, List[float]] = {}
    for assessment in assessments:
        for sa in assessment.skill_assessments:
            scores.setdefault(sa.skill.name_en, []).append(float(sa.score))
    return {name: _mean(values) for name, values in scores.items()}


class PerformanceService:

    async def student_performance(self, db: AsyncSession, student_id: UUID) -> PerformanceResponse:
        """
        A student with no graded work (or an unknown ID) gets an empty
        summary rather than a 404, so a new student's dashboard renders.
        """
        try:
            result = await db.execute(
                select(Submission)
                .options(
                    selectinload(Submission.task),
                    selectinload(Submission.assessments)
                    .selectinload(Assessment.skill_assessments)
                    .selectinload(SkillAssessment.skill),
                )
                .where(
                    Submission.student_id == student_id,
                    Submission.status == SUBMISSION_GRADED,
                )
                .order_by(Submission.submitted_at.asc())
            )
            submissions = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error loading performance of %s: %s", student_id, str(e))
            raise DatabaseError(context={"student_id": str(student_id)}) from e

        return summarize_performance(submissions)


performance_service = PerformanceService()
