"""
Skills Platform Backend — Submission Service Tests
====================================================

What:  Submission creation rules and the teacher's listing with nested
       assessments.
"""

import uuid

import pytest
from sqlalchemy.exc import IntegrityError

from skills_platform.exceptions import NotFoundError, ValidationError
from skills_platform.models import (
    Assessment,
    Skill,
    SkillAssessment,
    Submission,
    Task,
    User,
)
from skills_platform.models.common import utcnow
from skills_platform.schemas.submission import SubmissionCreate
from skills_platform.services.submission_service import submission_service


@pytest.fixture
def request_data():
    return SubmissionCreate(
        task_id=uuid.uuid4(),
        student_id=uuid.uuid4(),
        content="Climate change is caused by...",
    )


class TestCreateSubmission:

    @pytest.mark.asyncio
    async def test_stores_submission(self, mock_db_session, make_result, request_data):
        mock_db_session.get.side_effect = [Task(id=request_data.task_id), User(id=request_data.student_id)]
        mock_db_session.execute.return_value = make_result(scalar=None)

        result = await submission_service.create_submission(mock_db_session, request_data)

        assert result.status == "submitted"
        assert result.files == []
        assert result.task_id == request_data.task_id
        assert result.submitted_at is not None
        assert result.id is not None

    @pytest.mark.asyncio
    async def test_duplicate_submission(self, mock_db_session, make_result, request_data):
        mock_db_session.get.side_effect = [Task(id=request_data.task_id), User(id=request_data.student_id)]
        mock_db_session.execute.return_value = make_result(scalar=uuid.uuid4())

        with pytest.raises(ValidationError):
            await submission_service.create_submission(mock_db_session, request_data)
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_duplicate_from_unique_constraint(self, mock_db_session, make_result, request_data):
        mock_db_session.get.side_effect = [Task(id=request_data.task_id), User(id=request_data.student_id)]
        mock_db_session.execute.return_value = make_result(scalar=None)
        mock_db_session.flush.side_effect = IntegrityError("INSERT", {}, Exception("unique"))

        with pytest.raises(ValidationError):
            await submission_service.create_submission(mock_db_session, request_data)

    @pytest.mark.asyncio
    async def test_unknown_task(self, mock_db_session, request_data):
        mock_db_session.get.side_effect = [None]

        with pytest.raises(NotFoundError) as exc_info:
            await submission_service.create_submission(mock_db_session, request_data)
        assert exc_info.value.context["resource"] == "task"

    @pytest.mark.asyncio
    async def test_unknown_student(self, mock_db_session, request_data):
        mock_db_session.get.side_effect = [Task(id=request_data.task_id), None]

        with pytest.raises(NotFoundError) as exc_info:
            await submission_service.create_submission(mock_db_session, request_data)
        assert exc_info.value.context["resource"] == "student"


class TestListForTask:

    @pytest.mark.asyncio
    async def test_includes_student_and_assessment_tree(self, mock_db_session, make_result):
        student = User(id=uuid.uuid4(), email="sara@noor.edu", full_name="Sara Ahmed")
        skill = Skill(id=uuid.uuid4(), name_en="Creativity", name_ar="الإبداع")
        assessment = Assessment(id=uuid.uuid4(), overall_score=82.0, feedback="أحسنت")
        assessment.skill_assessments = [SkillAssessment(score=90.0, skill=skill)]
        submission = Submission(
            id=uuid.uuid4(),
            task_id=uuid.uuid4(),
            student_id=student.id,
            content="Answer",
            files=["https://files.example/essay.pdf"],
            status="graded",
            submitted_at=utcnow(),
        )
        submission.student = student
        submission.assessments = [assessment]

        mock_db_session.execute.return_value = make_result(scalars=[submission])

        result = await submission_service.list_for_task(mock_db_session, submission.task_id)

        assert len(result) == 1
        item = result[0]
        assert item.student.full_name == "Sara Ahmed"
        assert item.student.email == "sara@noor.edu"
        assert item.files == ["https://files.example/essay.pdf"]
        assert item.assessments[0].overall_score == 82.0
        assert item.assessments[0].feedback == "أحسنت"
        skill_score = item.assessments[0].skill_assessments[0]
        assert skill_score.score == 90.0
        assert skill_score.skills.name_en == "Creativity"
        assert skill_score.skills.name_ar == "الإبداع"

    @pytest.mark.asyncio
    async def test_unknown_task_is_empty(self, mock_db_session, make_result):
        mock_db_session.execute.return_value = make_result(scalars=[])

        assert await submission_service.list_for_task(mock_db_session, uuid.uuid4()) == []
