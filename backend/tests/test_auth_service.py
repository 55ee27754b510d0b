"""
Skills Platform Backend — School and Auth Service Tests
=========================================================

What:  SchoolService.create_school, AuthService.register and login against
       a mocked session.
"""

import uuid

import pytest
from sqlalchemy.exc import IntegrityError

from skills_platform.exceptions import AuthenticationError, NotFoundError, ValidationError
from skills_platform.models import School, User
from skills_platform.models.common import utcnow
from skills_platform.schemas.auth import LoginRequest, RegisterRequest
from skills_platform.schemas.school import SchoolCreate
from skills_platform.services.auth_service import auth_service
from skills_platform.services.school_service import school_service


@pytest.fixture
def school():
    return School(id=uuid.uuid4(), name="Al Noor School", code="NOOR1", created_at=utcnow())


@pytest.fixture
def student(school):
    user = User(
        id=uuid.uuid4(),
        email="sara@noor.edu",
        full_name="Sara Ahmed",
        role="student",
        school_id=school.id,
        created_at=utcnow(),
    )
    user.school = school
    return user


class TestCreateSchool:

    @pytest.mark.asyncio
    async def test_creates_school(self, mock_db_session, make_result, added_objects):
        mock_db_session.execute.return_value = make_result(scalar=None)

        result = await school_service.create_school(
            mock_db_session, SchoolCreate(name="Al Noor School", code="NOOR1")
        )

        assert result.name == "Al Noor School"
        assert result.code == "NOOR1"
        assert result.id is not None
        assert result.created_at is not None
        assert isinstance(added_objects()[0], School)

    @pytest.mark.asyncio
    async def test_duplicate_code(self, mock_db_session, make_result, school):
        mock_db_session.execute.return_value = make_result(scalar=school)

        with pytest.raises(ValidationError) as exc_info:
            await school_service.create_school(
                mock_db_session, SchoolCreate(name="Other", code="NOOR1")
            )
        assert exc_info.value.field == "code"
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_concurrent_duplicate_from_constraint(self, mock_db_session, make_result):
        mock_db_session.execute.return_value = make_result(scalar=None)
        mock_db_session.flush.side_effect = IntegrityError("INSERT", {}, Exception("unique"))

        with pytest.raises(ValidationError):
            await school_service.create_school(
                mock_db_session, SchoolCreate(name="Al Noor", code="NOOR1")
            )


class TestRegister:

    def _request(self, **overrides):
        data = {
            "email": "sara@noor.edu",
            "full_name": "Sara Ahmed",
            "role": "student",
            "school_code": "NOOR1",
        }
        data.update(overrides)
        return RegisterRequest(**data)

    @pytest.mark.asyncio
    async def test_registers_user_in_school(self, mock_db_session, make_result, school):
        mock_db_session.execute.side_effect = [
            make_result(scalar=school),
            make_result(scalar=None),
        ]

        result = await auth_service.register(mock_db_session, self._request())

        assert result.email == "sara@noor.edu"
        assert result.role == "student"
        assert result.school_id == school.id
        assert result.school.name == "Al Noor School"
        assert result.created_at is not None
        assert result.last_login is None

    @pytest.mark.asyncio
    async def test_unknown_school_code(self, mock_db_session, make_result):
        mock_db_session.execute.return_value = make_result(scalar=None)

        with pytest.raises(NotFoundError):
            await auth_service.register(mock_db_session, self._request(school_code="NOPE"))

    @pytest.mark.asyncio
    async def test_email_already_registered(self, mock_db_session, make_result, school):
        mock_db_session.execute.side_effect = [
            make_result(scalar=school),
            make_result(scalar=uuid.uuid4()),
        ]

        with pytest.raises(ValidationError) as exc_info:
            await auth_service.register(mock_db_session, self._request())
        assert exc_info.value.field == "email"

    def test_email_must_contain_at(self):
        with pytest.raises(ValueError):
            self._request(email="not-an-email")

    def test_role_restricted(self):
        with pytest.raises(ValueError):
            self._request(role="principal")


class TestLogin:

    @pytest.mark.asyncio
    async def test_login_stamps_last_login(self, mock_db_session, make_result, student):
        mock_db_session.execute.return_value = make_result(scalar=student)

        result = await auth_service.login(mock_db_session, LoginRequest(email="sara@noor.edu"))

        assert result.id == student.id
        assert result.last_login is not None
        assert student.last_login is not None
        assert result.school.name == "Al Noor School"
        mock_db_session.flush.assert_awaited()

    @pytest.mark.asyncio
    async def test_unknown_email(self, mock_db_session, make_result):
        mock_db_session.execute.return_value = make_result(scalar=None)

        with pytest.raises(AuthenticationError) as exc_info:
            await auth_service.login(mock_db_session, LoginRequest(email="ghost@noor.edu"))
        assert exc_info.value.status_code == 401
