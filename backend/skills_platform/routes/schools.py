"""School creation route."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from skills_platform.database import get_db_session
from skills_platform.schemas.common import ErrorResponse
from skills_platform.schemas.school import SchoolCreate, SchoolEnvelope
from skills_platform.services.school_service import school_service

router = APIRouter(prefix="/api", tags=["Schools"])


@router.post(
    "/schools",
    response_model=SchoolEnvelope,
    responses={400: {"description": "Missing field or duplicate code", "model": ErrorResponse}},
    summary="Create a school",
)
async def create_school(
    data: SchoolCreate,
    db: AsyncSession = Depends(get_db_session),
) -> SchoolEnvelope:
    school = await school_service.create_school(db, data)
    return SchoolEnvelope(school=school)
