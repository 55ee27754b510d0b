"""
Skills Platform Backend — Submission Model
============================================

What:  The `submissions` table: a student's answer to a task.

Lifecycle:
    submitted → graded (set by the AI grading flow once an assessment exists)

Constraint:
    One submission per (task, student). Enforced twice: the service checks
    before inserting, and the unique constraint catches concurrent inserts.
"""

import uuid
from datetime import datetime
from typing import List

from sqlalchemy import ForeignKey, String, Text, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import JSONB, UUID, TIMESTAMP

from skills_platform.database import Base
from skills_platform.models.common import utcnow, uuid_pk

SUBMISSION_SUBMITTED = "submitted"
SUBMISSION_GRADED = "graded"

# Reported for tasks the student has not answered yet
SUBMISSION_PENDING = "pending"


class Submission(Base):
    __tablename__ = "submissions"

    id: Mapped[uuid.UUID] = uuid_pk()

    task_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    student_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    content: Mapped[str] = mapped_column(Text, nullable=False)

    # What: References (URLs) to files uploaded by the frontend to object storage
    files: Mapped[list] = mapped_column(
        JSONB,
        nullable=False,
        default=list,
        server_default=text("'[]'::jsonb"),
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=SUBMISSION_SUBMITTED,
        server_default=text("'submitted'"),
    )

    submitted_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    task: Mapped["Task"] = relationship(back_populates="submissions")  # noqa: F821
    student: Mapped["User"] = relationship()  # noqa: F821
    assessments: Mapped[List["Assessment"]] = relationship(  # noqa: F821
        back_populates="submission",
        order_by="Assessment.created_at",
    )

    __table_args__ = (
        UniqueConstraint("task_id", "student_id", name="uq_submissions_task_student"),
    )

    def __repr__(self) -> str:
        return f"<Submission(id={self.id}, status='{self.status}')>"
