"""Column helpers shared by every table."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID


def utcnow() -> datetime:
    """Timezone-aware now; every timestamp column stores UTC."""
    return datetime.now(timezone.utc)


def uuid_pk() -> Mapped[uuid.UUID]:
    # gen_random_uuid() matches the default the hosted dashboard gives new tables
    return mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
