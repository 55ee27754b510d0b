"""
Student performance schemas.

Averages are rounded to one decimal place. Trend compares only the first
and last score of a skill: fewer than two scores is "stable".
"""

from typing import List, Literal

from pydantic import BaseModel, Field


class SkillPerformance(BaseModel):
    skill: str = Field(description="English skill name")
    skill_ar: str = Field(description="Arabic skill name")
    average: float
    trend: Literal["up", "down", "stable"]


class PerformancePoint(BaseModel):
    date: str = Field(description="Submission day, YYYY-MM-DD")
    task: str
    score: float


class PerformanceResponse(BaseModel):
    success: bool = True
    overall_average: float
    total_tasks: int
    skills_performance: List[SkillPerformance]
    performance_over_time: List[PerformancePoint]
    strengths: List[SkillPerformance]
    weaknesses: List[SkillPerformance]
