"""
Skills Platform Backend — Auth Service
========================================

What:  Registration and login.
How:   Login is a lookup by email; there are no passwords or tokens. The
       frontend keeps the returned user object as its session.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from skills_platform.exceptions import (
    AuthenticationError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from skills_platform.models import School, User
from skills_platform.models.common import utcnow
from skills_platform.schemas.auth import LoginRequest, RegisterRequest, SchoolName, UserOut

logger = logging.getLogger(__name__)


def user_out(user: User, school: Optional[School] = None) -> UserOut:
    school = school or user.school
    return UserOut(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        role=user.role,
        school_id=user.school_id,
        created_at=user.created_at,
        last_login=user.last_login,
        school=SchoolName(name=school.name) if school is not None else None,
    )


class AuthService:

    async def register(self, db: AsyncSession, data: RegisterRequest) -> UserOut:
        """
        Creates a user in the school identified by `school_code`.

        Raises:
            NotFoundError: No school has that code (→ 404)
            ValidationError: The email is already registered (→ 400)
        """
        try:
            result = await db.execute(select(School).where(School.code == data.school_code))
            school = result.scalar_one_or_none()
            if school is None:
                raise NotFoundError(resource="school", context={"school_code": data.school_code})

            result = await db.execute(select(User.id).where(User.email == data.email))
            if result.scalar_one_or_none() is not None:
                raise ValidationError("This email is already registered", field="email")

            user = User(
                email=data.email,
                full_name=data.full_name,
                role=data.role,
                school_id=school.id,
                created_at=utcnow(),
            )
            db.add(user)
            await db.flush()
        except IntegrityError as e:
            raise ValidationError("This email is already registered", field="email") from e
        except SQLAlchemyError as e:
            logger.error("Database error registering user: %s", str(e))
            raise DatabaseError(context={"operation": "register"}) from e

        logger.info("User registered: %s (role=%s, school=%s)", user.id, user.role, school.code)
        return user_out(user, school)

    async def login(self, db: AsyncSession, data: LoginRequest) -> UserOut:
        """
        Looks the user up by email and stamps last_login.

        Raises:
            AuthenticationError: No account with that email (→ 401)
        """
        try:
            result = await db.execute(
                select(User).options(selectinload(User.school)).where(User.email == data.email)
            )
            user = result.scalar_one_or_none()
            if user is None:
                raise AuthenticationError()

            user.last_login = utcnow()
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error during login: %s", str(e))
            raise DatabaseError(context={"operation": "login"}) from e

        logger.info("User logged in: %s", user.id)
        return user_out(user)


auth_service = AuthService()
