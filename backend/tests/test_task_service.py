"""
Skills Platform Backend — Task Service Tests
==============================================

What:  Student and teacher listings, creation rules and status updates.
"""

import uuid
from datetime import timedelta

import pytest

from skills_platform.exceptions import ForbiddenError, NotFoundError
from skills_platform.models import Submission, Task, User
from skills_platform.models.common import utcnow
from skills_platform.schemas.task import TaskCreate
from skills_platform.services.task_service import task_service

SCHOOL_ID = uuid.uuid4()


def make_user(role="teacher", name="Mona Hassan"):
    return User(
        id=uuid.uuid4(),
        email=f"{uuid.uuid4().hex[:6]}@noor.edu",
        full_name=name,
        role=role,
        school_id=SCHOOL_ID,
        created_at=utcnow(),
    )


def make_task(teacher, title="Climate essay", age_days=0):
    task = Task(
        id=uuid.uuid4(),
        teacher_id=teacher.id,
        school_id=SCHOOL_ID,
        title=title,
        description="Write about climate change",
        questions=["Why?", "How?"],
        due_date=utcnow() + timedelta(days=7),
        status="active",
        created_at=utcnow() - timedelta(days=age_days),
    )
    task.teacher = teacher
    return task


class TestListForStudent:

    @pytest.mark.asyncio
    async def test_marks_own_submission_status(self, mock_db_session, make_result):
        teacher = make_user()
        student = make_user(role="student", name="Sara")
        answered = make_task(teacher, "Answered")
        open_task = make_task(teacher, "Open", age_days=1)
        own = Submission(
            id=uuid.uuid4(),
            task_id=answered.id,
            student_id=student.id,
            content="My answer",
            status="graded",
        )

        mock_db_session.get.return_value = student
        mock_db_session.execute.side_effect = [
            make_result(scalars=[answered, open_task]),
            make_result(scalars=[own]),
        ]

        tasks = await task_service.list_for_student(mock_db_session, student.id)

        assert [t.title for t in tasks] == ["Answered", "Open"]
        assert tasks[0].submission_status == "graded"
        assert tasks[0].submission_id == own.id
        assert tasks[0].teacher.full_name == "Mona Hassan"
        assert tasks[1].submission_status == "pending"
        assert tasks[1].submission_id is None

    @pytest.mark.asyncio
    async def test_no_tasks_skips_submission_query(self, mock_db_session, make_result):
        mock_db_session.get.return_value = make_user(role="student")
        mock_db_session.execute.return_value = make_result(scalars=[])

        tasks = await task_service.list_for_student(mock_db_session, uuid.uuid4())

        assert tasks == []
        assert mock_db_session.execute.await_count == 1

    @pytest.mark.asyncio
    async def test_unknown_student(self, mock_db_session):
        mock_db_session.get.return_value = None

        with pytest.raises(NotFoundError):
            await task_service.list_for_student(mock_db_session, uuid.uuid4())


class TestListForTeacher:

    @pytest.mark.asyncio
    async def test_counts_by_status(self, mock_db_session, make_result):
        teacher = make_user()
        first = make_task(teacher, "First")
        second = make_task(teacher, "Second", age_days=2)

        mock_db_session.execute.side_effect = [
            make_result(scalars=[first, second]),
            make_result(rows=[(first.id, "graded", 2), (first.id, "submitted", 3)]),
        ]

        tasks = await task_service.list_for_teacher(mock_db_session, teacher.id)

        assert tasks[0].total_submissions == 5
        assert tasks[0].graded == 2
        assert tasks[0].pending == 3
        assert tasks[1].total_submissions == 0
        assert tasks[1].graded == 0
        assert tasks[1].pending == 0


class TestCreateTask:

    def _request(self, teacher_id, questions=None):
        return TaskCreate(
            teacher_id=teacher_id,
            title="Climate essay",
            description="Write about climate change",
            questions=questions,
            due_date=utcnow() + timedelta(days=7),
        )

    @pytest.mark.asyncio
    async def test_creates_active_task_in_teachers_school(self, mock_db_session):
        teacher = make_user()
        mock_db_session.get.return_value = teacher

        task = await task_service.create_task(mock_db_session, self._request(teacher.id))

        assert task.status == "active"
        assert task.school_id == SCHOOL_ID
        assert task.teacher_id == teacher.id
        assert task.questions == []
        assert task.id is not None

    @pytest.mark.asyncio
    async def test_keeps_questions(self, mock_db_session):
        teacher = make_user()
        mock_db_session.get.return_value = teacher

        task = await task_service.create_task(
            mock_db_session, self._request(teacher.id, questions=["Q1", "Q2"])
        )
        assert task.questions == ["Q1", "Q2"]

    @pytest.mark.asyncio
    async def test_teacher_missing(self, mock_db_session):
        mock_db_session.get.return_value = None

        with pytest.raises(NotFoundError):
            await task_service.create_task(mock_db_session, self._request(uuid.uuid4()))

    @pytest.mark.asyncio
    async def test_student_cannot_create(self, mock_db_session):
        student = make_user(role="student")
        mock_db_session.get.return_value = student

        with pytest.raises(ForbiddenError):
            await task_service.create_task(mock_db_session, self._request(student.id))
        mock_db_session.add.assert_not_called()


class TestUpdateStatus:

    @pytest.mark.asyncio
    async def test_cancels_and_stamps_updated_at(self, mock_db_session):
        task = make_task(make_user())
        mock_db_session.get.return_value = task

        result = await task_service.update_status(mock_db_session, task.id, "cancelled")

        assert result.status == "cancelled"
        assert result.updated_at is not None
        mock_db_session.flush.assert_awaited()

    @pytest.mark.asyncio
    async def test_unknown_task(self, mock_db_session):
        with pytest.raises(NotFoundError):
            await task_service.update_status(mock_db_session, uuid.uuid4(), "active")
