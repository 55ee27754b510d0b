"""
Skills Platform Backend — Assessment Models
=============================================

What:  `assessments`, `skills` and `skill_assessments` tables.

Shape:
    Submission 1 ── * Assessment 1 ── * SkillAssessment * ── 1 Skill

    An Assessment is one grading pass over a submission (overall score and
    written feedback). Each SkillAssessment holds the 0-100 score for one
    of the 21st-century skills in that pass.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import Float, ForeignKey, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import JSONB, UUID, TIMESTAMP

from skills_platform.database import Base
from skills_platform.models.common import utcnow, uuid_pk


class Skill(Base):
    """
    One of the tracked skills. Seeded by the initial migration:
    Communication, Critical Thinking, Creativity, Collaboration,
    Problem Solving.
    """

    __tablename__ = "skills"

    id: Mapped[uuid.UUID] = uuid_pk()
    name_en: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    name_ar: Mapped[str] = mapped_column(String(100), nullable=False)

    def __repr__(self) -> str:
        return f"<Skill(name_en='{self.name_en}')>"


class Assessment(Base):
    __tablename__ = "assessments"

    id: Mapped[uuid.UUID] = uuid_pk()

    submission_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("submissions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    overall_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    feedback: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # What: The full JSON object the model returned, kept for auditing prompts
    ai_analysis: Mapped[Optional[dict]] = mapped_column(JSONB, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    submission: Mapped["Submission"] = relationship(back_populates="assessments")  # noqa: F821
    skill_assessments: Mapped[List["SkillAssessment"]] = relationship(
        back_populates="assessment",
    )


class SkillAssessment(Base):
    __tablename__ = "skill_assessments"

    id: Mapped[uuid.UUID] = uuid_pk()

    assessment_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("assessments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    skill_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("skills.id", ondelete="CASCADE"),
        nullable=False,
    )

    score: Mapped[float] = mapped_column(Float, nullable=False)

    assessment: Mapped[Assessment] = relationship(back_populates="skill_assessments")
    skill: Mapped[Skill] = relationship()
