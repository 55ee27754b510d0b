"""Student performance dashboard route."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from skills_platform.database import get_db_session
from skills_platform.schemas.performance import PerformanceResponse
from skills_platform.services.performance_service import performance_service

router = APIRouter(prefix="/api/performance", tags=["Performance"])


@router.get(
    "/student/{student_id}",
    response_model=PerformanceResponse,
    summary="Skill averages, trends and history of a student's graded work",
)
async def student_performance(
    student_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> PerformanceResponse:
    return await performance_service.student_performance(db, student_id)
