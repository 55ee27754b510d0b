"""
Skills Platform Backend — School Model
========================================

What:  The `schools` table. Every user and task belongs to one school.
How:   Users join a school by its short `code` at registration time, so the
       code is unique and indexed.
"""

import uuid
from datetime import datetime

from sqlalchemy import String, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import TIMESTAMP

from skills_platform.database import Base
from skills_platform.models.common import utcnow, uuid_pk


class School(Base):
    __tablename__ = "schools"

    id: Mapped[uuid.UUID] = uuid_pk()

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # What: Join code handed out to teachers and students
    code: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<School(id={self.id}, code='{self.code}')>"
