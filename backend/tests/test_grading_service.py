"""
Skills Platform Backend — Grading Service Tests
=================================================

What:  The four AI operations with a stub LLM: what gets persisted, which
       prompt is built, and the error paths (no AI, missing rows, bad JSON).
"""

import json
import uuid
from datetime import timedelta

import pytest

from conftest import FakeLLM
from skills_platform.exceptions import (
    AIResponseFormatError,
    AIUnavailableError,
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
from skills_platform.services.grading_service import (
    GradingService,
    as_score,
    excellent_performance,
    priority_for,
)
from skills_platform.services.prompts import skill_key

SKILL_NAMES = [
    ("Collaboration", "التعاون"),
    ("Communication", "التواصل"),
    ("Creativity", "الإبداع"),
    ("Critical Thinking", "التفكير النقدي"),
    ("Problem Solving", "حل المشكلات"),
]


@pytest.fixture
def skills():
    return [Skill(id=uuid.uuid4(), name_en=en, name_ar=ar) for en, ar in SKILL_NAMES]


@pytest.fixture
def task():
    return Task(
        id=uuid.uuid4(),
        teacher_id=uuid.uuid4(),
        school_id=uuid.uuid4(),
        title="Climate essay",
        description="Explain the causes of climate change",
        questions=["What causes it?", "What can students do?"],
        due_date=utcnow() + timedelta(days=3),
        status="active",
        created_at=utcnow(),
    )


@pytest.fixture
def submission(task):
    sub = Submission(
        id=uuid.uuid4(),
        task_id=task.id,
        student_id=uuid.uuid4(),
        content="Greenhouse gases trap heat...",
        files=[],
        status="submitted",
        submitted_at=utcnow(),
    )
    sub.task = task
    return sub


def graded_submission(scores, skills):
    """A submission whose first assessment has the given per-skill scores."""
    by_name = {s.name_en: s for s in skills}
    assessment = Assessment(id=uuid.uuid4(), overall_score=70.0)
    assessment.skill_assessments = [
        SkillAssessment(skill_id=by_name[name].id, skill=by_name[name], score=score)
        for name, score in scores.items()
    ]
    sub = Submission(id=uuid.uuid4(), task_id=uuid.uuid4(), student_id=uuid.uuid4(), content="x")
    sub.assessments = [assessment]
    return sub


class TestHelpers:

    def test_skill_key(self):
        assert skill_key("Critical Thinking") == "critical_thinking"
        assert skill_key("Problem  Solving") == "problem_solving"
        assert skill_key("Creativity") == "creativity"

    def test_as_score(self):
        assert as_score(82) == 82.0
        assert as_score(0) == 0.0
        assert as_score("77.5") == 77.5
        assert as_score("high") is None
        assert as_score(None) is None
        assert as_score(True) is None
        assert as_score([80]) is None

    def test_as_score_rejects_non_finite(self):
        assert as_score("nan") is None
        assert as_score("inf") is None
        assert as_score("-Infinity") is None
        assert as_score(float("nan")) is None
        assert as_score(float("inf")) is None

    def test_priority_for(self):
        assert priority_for(45) == "high"
        assert priority_for(59.9) == "high"
        assert priority_for(60) == "medium"
        assert priority_for(74) == "medium"
        assert priority_for(75) == "low"


class TestGradeSubmission:

    @pytest.mark.asyncio
    async def test_persists_assessment_and_skill_scores(
        self, mock_db_session, make_result, added_objects, submission, skills
    ):
        grading = {
            "communication": 85,
            "critical_thinking": 0,
            "creativity": "not sure",
            "collaboration": 75,
            "overall_score": 82,
            "feedback": "عمل جيد",
        }
        llm = FakeLLM(replies=["```json\n" + json.dumps(grading, ensure_ascii=False) + "\n```"])
        mock_db_session.execute.side_effect = [
            make_result(scalar=submission),
            make_result(scalars=skills),
        ]

        result = await GradingService(llm).grade_submission(mock_db_session, submission.id)

        assert result == grading
        assert submission.status == "graded"

        added = added_objects()
        assessment = added[0]
        assert isinstance(assessment, Assessment)
        assert assessment.overall_score == 82.0
        assert assessment.feedback == "عمل جيد"
        assert assessment.ai_analysis == grading

        skill_scores = {
            next(s.name_en for s in skills if s.id == sa.skill_id): sa.score
            for sa in added[1:]
        }
        assert skill_scores == {
            "Collaboration": 75.0,
            "Communication": 85.0,
            "Creativity": 75.0,
            "Critical Thinking": 0.0,
            "Problem Solving": 75.0,
        }
        assert all(sa.assessment_id == assessment.id for sa in added[1:])

    @pytest.mark.asyncio
    async def test_prompt_includes_task_and_answer(
        self, mock_db_session, make_result, submission, skills
    ):
        llm = FakeLLM(replies=['{"overall_score": 70, "feedback": "ok"}'])
        mock_db_session.execute.side_effect = [
            make_result(scalar=submission),
            make_result(scalars=skills),
        ]

        await GradingService(llm).grade_submission(mock_db_session, submission.id)

        prompt = llm.prompts[0]
        assert "Climate essay" in prompt
        assert "Explain the causes of climate change" in prompt
        assert "What can students do?" in prompt
        assert "Greenhouse gases trap heat..." in prompt
        assert '"critical_thinking"' in prompt
        assert "التفكير النقدي" in prompt

    @pytest.mark.asyncio
    async def test_non_finite_scores_fall_back_to_default(
        self, mock_db_session, make_result, added_objects, submission, skills
    ):
        reply = (
            '{"communication": NaN, "creativity": "nan", "collaboration": Infinity, '
            '"critical_thinking": 64, "problem_solving": 88, '
            '"overall_score": NaN, "feedback": "ok"}'
        )
        llm = FakeLLM(replies=[reply])
        mock_db_session.execute.side_effect = [
            make_result(scalar=submission),
            make_result(scalars=skills),
        ]

        result = await GradingService(llm).grade_submission(mock_db_session, submission.id)

        assert result["communication"] is None
        added = added_objects()
        assert added[0].overall_score is None
        skill_scores = {
            next(s.name_en for s in skills if s.id == sa.skill_id): sa.score
            for sa in added[1:]
        }
        assert skill_scores == {
            "Collaboration": 75.0,
            "Communication": 75.0,
            "Creativity": 75.0,
            "Critical Thinking": 64.0,
            "Problem Solving": 88.0,
        }

    @pytest.mark.asyncio
    async def test_unknown_submission(self, mock_db_session, make_result):
        llm = FakeLLM()
        mock_db_session.execute.return_value = make_result(scalar=None)

        with pytest.raises(NotFoundError):
            await GradingService(llm).grade_submission(mock_db_session, uuid.uuid4())
        assert llm.prompts == []

    @pytest.mark.asyncio
    async def test_unparseable_reply_persists_nothing(
        self, mock_db_session, make_result, submission, skills
    ):
        llm = FakeLLM(replies=["Sorry, I can't grade this."])
        mock_db_session.execute.side_effect = [
            make_result(scalar=submission),
            make_result(scalars=skills),
        ]

        with pytest.raises(AIResponseFormatError):
            await GradingService(llm).grade_submission(mock_db_session, submission.id)
        mock_db_session.add.assert_not_called()
        assert submission.status == "submitted"

    @pytest.mark.asyncio
    async def test_ai_disabled(self, mock_db_session):
        with pytest.raises(AIUnavailableError) as exc_info:
            await GradingService(FakeLLM(enabled=False)).grade_submission(
                mock_db_session, uuid.uuid4()
            )
        assert exc_info.value.status_code == 503
        mock_db_session.execute.assert_not_awaited()


class TestRecommendations:

    @pytest.mark.asyncio
    async def test_no_weak_skills_returns_canned_payload(
        self, mock_db_session, make_result, skills
    ):
        llm = FakeLLM()
        sub = graded_submission({"Communication": 80, "Creativity": 70}, skills)
        mock_db_session.execute.return_value = make_result(scalar=sub)

        result = await GradingService(llm).recommendations(
            mock_db_session, sub.student_id, sub.task_id
        )

        assert result == excellent_performance()
        assert llm.prompts == []
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_ungraded_submission_has_no_weak_skills(self, mock_db_session, make_result):
        sub = Submission(id=uuid.uuid4(), task_id=uuid.uuid4(), student_id=uuid.uuid4(), content="x")
        sub.assessments = []
        mock_db_session.execute.return_value = make_result(scalar=sub)

        result = await GradingService(FakeLLM()).recommendations(
            mock_db_session, sub.student_id, sub.task_id
        )
        assert result["diagnosis"] == excellent_performance()["diagnosis"]

    @pytest.mark.asyncio
    async def test_weak_skills_generate_and_store_plan(
        self, mock_db_session, make_result, added_objects, skills
    ):
        plan = {
            "diagnosis": "Needs practice presenting ideas",
            "activities": ["Debate club"],
            "resources": [{"title": "Public speaking", "type": "course", "url": "https://x", "duration": "3h"}],
            "week_plan": ["Day 1: read"],
            "month_plan": ["Week 1: practice"],
        }
        llm = FakeLLM(replies=[json.dumps(plan)])
        sub = graded_submission(
            {"Communication": 55, "Creativity": 65, "Collaboration": 90}, skills
        )
        mock_db_session.execute.return_value = make_result(scalar=sub)

        result = await GradingService(llm).recommendations(
            mock_db_session, sub.student_id, sub.task_id
        )

        assert result == plan
        assert "Communication" in llm.prompts[0]
        assert "Creativity" in llm.prompts[0]
        assert "Collaboration" not in llm.prompts[0]

        (stored,) = added_objects()
        assert isinstance(stored, Recommendation)
        assert stored.priority == "high"
        assert stored.student_id == sub.student_id
        assert stored.task_id == sub.task_id
        assert stored.skill_id == next(s.id for s in skills if s.name_en == "Communication")
        assert stored.recommendation_text == "Needs practice presenting ideas"
        assert stored.resources == plan["resources"]

    @pytest.mark.asyncio
    async def test_medium_priority(self, mock_db_session, make_result, added_objects, skills):
        llm = FakeLLM(replies=['{"diagnosis": "d", "resources": "none"}'])
        sub = graded_submission({"Creativity": 65}, skills)
        mock_db_session.execute.return_value = make_result(scalar=sub)

        await GradingService(llm).recommendations(mock_db_session, sub.student_id, sub.task_id)

        (stored,) = added_objects()
        assert stored.priority == "medium"
        assert stored.resources == []

    @pytest.mark.asyncio
    async def test_no_submission(self, mock_db_session, make_result):
        mock_db_session.execute.return_value = make_result(scalar=None)

        with pytest.raises(NotFoundError):
            await GradingService(FakeLLM()).recommendations(
                mock_db_session, uuid.uuid4(), uuid.uuid4()
            )


class TestAnalyzePerformance:

    @pytest.mark.asyncio
    async def test_averages_and_weak_skills(self, mock_db_session, make_result, skills):
        analysis = {
            "overallAnalysis": "Solid progress",
            "strengths": ["Communication"],
            "weaknesses": [{"skill": "Creativity", "reason": "r", "suggestions": ["s"]}],
            "futureProjection": "Improving",
        }
        llm = FakeLLM(replies=[json.dumps(analysis)])
        first = graded_submission({"Communication": 90, "Creativity": 60}, skills).assessments[0]
        second = graded_submission({"Communication": 80, "Creativity": 80}, skills).assessments[0]
        mock_db_session.get.return_value = User(id=uuid.uuid4())
        mock_db_session.execute.return_value = make_result(scalars=[first, second])

        result = await GradingService(llm).analyze_performance(mock_db_session, uuid.uuid4())

        assert result.analysis == analysis
        assert result.skill_scores == {"Communication": 85.0, "Creativity": 70.0}
        assert result.weak_skills == ["Creativity"]
        assert "Completed assessments: 2" in llm.prompts[0]

    @pytest.mark.asyncio
    async def test_unknown_student(self, mock_db_session):
        mock_db_session.get.return_value = None

        with pytest.raises(NotFoundError):
            await GradingService(FakeLLM()).analyze_performance(mock_db_session, uuid.uuid4())


class TestEvaluateTask:

    EVALUATION = {
        "scores": {"utility": 85, "feasibility": 90, "propriety": 80, "accuracy": 88},
        "overallQuality": 86,
        "feedback": "Clear task",
        "improvements": ["Add a rubric"],
    }

    @pytest.mark.asyncio
    async def test_without_submission(self, mock_db_session, task):
        llm = FakeLLM(replies=[json.dumps(self.EVALUATION)])
        mock_db_session.get.return_value = task

        result = await GradingService(llm).evaluate_task(mock_db_session, task.id)

        assert result == self.EVALUATION
        assert "JCSEE" in llm.prompts[0]
        assert "Explain the causes of climate change" in llm.prompts[0]

    @pytest.mark.asyncio
    async def test_with_submission_includes_answer(self, mock_db_session, task, submission):
        llm = FakeLLM(replies=[json.dumps(self.EVALUATION)])
        mock_db_session.get.side_effect = [task, submission]

        await GradingService(llm).evaluate_task(mock_db_session, task.id, submission.id)

        assert "Greenhouse gases trap heat..." in llm.prompts[0]

    @pytest.mark.asyncio
    async def test_submission_of_another_task(self, mock_db_session, task, submission):
        submission.task_id = uuid.uuid4()
        mock_db_session.get.side_effect = [task, submission]

        with pytest.raises(ValidationError):
            await GradingService(FakeLLM()).evaluate_task(mock_db_session, task.id, submission.id)

    @pytest.mark.asyncio
    async def test_unknown_task(self, mock_db_session):
        mock_db_session.get.return_value = None

        with pytest.raises(NotFoundError):
            await GradingService(FakeLLM()).evaluate_task(mock_db_session, uuid.uuid4())
