"""
Skills Platform Backend — Task Model
======================================

What:  The `tasks` table: assignments a teacher publishes to their school.

Lifecycle:
    active ⇄ cancelled (PATCH /api/tasks/{id}). Tasks are never deleted;
    cancelled tasks stay visible so existing submissions keep their context.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import ForeignKey, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import JSONB, UUID, TIMESTAMP

from skills_platform.database import Base
from skills_platform.models.common import utcnow, uuid_pk

TASK_ACTIVE = "active"
TASK_CANCELLED = "cancelled"
TASK_STATUSES = (TASK_ACTIVE, TASK_CANCELLED)


class Task(Base):
    __tablename__ = "tasks"

    id: Mapped[uuid.UUID] = uuid_pk()

    teacher_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    # Copied from the teacher at creation time so student listings need one filter
    school_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("schools.id", ondelete="CASCADE"),
        nullable=False,
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    # What: Ordered list of question strings shown to students and sent to the model
    questions: Mapped[List[str]] = mapped_column(
        JSONB,
        nullable=False,
        default=list,
        server_default=text("'[]'::jsonb"),
    )

    due_date: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=TASK_ACTIVE,
        server_default=text("'active'"),
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    teacher: Mapped["User"] = relationship(foreign_keys=[teacher_id])  # noqa: F821
    submissions: Mapped[List["Submission"]] = relationship(  # noqa: F821
        back_populates="task",
        order_by="Submission.submitted_at.desc()",
    )

    # Both listings sort newest first within one school / one teacher
    __table_args__ = (
        Index("idx_tasks_school_created", "school_id", created_at.desc()),
        Index("idx_tasks_teacher_created", "teacher_id", created_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, status='{self.status}')>"
