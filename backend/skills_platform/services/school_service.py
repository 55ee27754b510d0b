"""
Skills Platform Backend — School Service
==========================================

What:  Creates schools. A school's code is what users type at registration.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from skills_platform.exceptions import DatabaseError, ValidationError
from skills_platform.models import School
from skills_platform.models.common import utcnow
from skills_platform.schemas.school import SchoolCreate, SchoolOut

logger = logging.getLogger(__name__)


class SchoolService:

    async def create_school(self, db: AsyncSession, data: SchoolCreate) -> SchoolOut:
        """
        Raises:
            ValidationError: The code is already taken (→ 400)
            DatabaseError: Query execution failed (→ 500)
        """
        try:
            result = await db.execute(select(School).where(School.code == data.code))
            if result.scalar_one_or_none() is not None:
                raise ValidationError("A school with this code already exists", field="code")

            school = School(name=data.name, code=data.code, created_at=utcnow())
            db.add(school)
            await db.flush()
        except IntegrityError as e:
            # Lost a race with a concurrent insert of the same code
            raise ValidationError("A school with this code already exists", field="code") from e
        except SQLAlchemyError as e:
            logger.error("Database error creating school %s: %s", data.code, str(e))
            raise DatabaseError(context={"operation": "create_school"}) from e

        logger.info("School created: %s (code=%s)", school.id, school.code)
        return SchoolOut(
            id=school.id,
            name=school.name,
            code=school.code,
            created_at=school.created_at,
        )


school_service = SchoolService()
