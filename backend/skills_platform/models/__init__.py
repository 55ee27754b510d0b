"""
ORM models for the hosted database.

Importing this package registers every table on Base.metadata, which
Alembic and the string-based relationship() targets both rely on.
"""

from skills_platform.models.school import School
from skills_platform.models.user import User
from skills_platform.models.task import Task
from skills_platform.models.submission import Submission
from skills_platform.models.assessment import Assessment, Skill, SkillAssessment
from skills_platform.models.recommendation import Recommendation

__all__ = [
    "School",
    "User",
    "Task",
    "Submission",
    "Assessment",
    "Skill",
    "SkillAssessment",
    "Recommendation",
]
