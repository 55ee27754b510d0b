"""Create skills platform schema

Revision ID: 001
Revises: None
Create Date: 2025-01-10 00:00:00.000000+00:00

What:  Creates schools, users, tasks, submissions, skills, assessments,
       skill_assessments and recommendations, and seeds the five skills.
How:   PostgreSQL features: UUID keys with gen_random_uuid(), JSONB,
       TIMESTAMP WITH TIME ZONE.

Rollback: downgrade() drops every table (destructive, all data lost).
"""

import uuid
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SEED_SKILLS = [
    ("Communication", "التواصل"),
    ("Critical Thinking", "التفكير النقدي"),
    ("Creativity", "الإبداع"),
    ("Collaboration", "التعاون"),
    ("Problem Solving", "حل المشكلات"),
]


def _id() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("gen_random_uuid()"),
        nullable=False,
    )


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(
        name,
        sa.TIMESTAMP(timezone=True),
        server_default=None if nullable else sa.text("CURRENT_TIMESTAMP"),
        nullable=nullable,
    )


def _fk(name: str, target: str, nullable: bool = False, ondelete: str = "CASCADE") -> sa.Column:
    return sa.Column(
        name,
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey(f"{target}.id", ondelete=ondelete),
        nullable=nullable,
    )


def _jsonb_list(name: str, comment: str) -> sa.Column:
    return sa.Column(
        name,
        postgresql.JSONB(),
        nullable=False,
        server_default=sa.text("'[]'::jsonb"),
        comment=comment,
    )


def upgrade() -> None:
    op.create_table(
        "schools",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("code", sa.String(64), nullable=False, comment="Join code used at registration"),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_schools_code", "schools", ["code"], unique=True)

    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, comment="student, teacher or admin"),
        _fk("school_id", "schools"),
        _timestamp("created_at"),
        _timestamp("last_login", nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_school_id", "users", ["school_id"])

    op.create_table(
        "tasks",
        _id(),
        _fk("teacher_id", "users"),
        _fk("school_id", "schools"),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        _jsonb_list("questions", "Ordered list of question strings"),
        sa.Column("due_date", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column(
            "status",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'active'"),
            comment="active or cancelled",
        ),
        _timestamp("created_at"),
        _timestamp("updated_at", nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    # Student and teacher listings: newest first within one school / one teacher
    op.create_index("idx_tasks_school_created", "tasks", ["school_id", sa.text("created_at DESC")])
    op.create_index("idx_tasks_teacher_created", "tasks", ["teacher_id", sa.text("created_at DESC")])

    op.create_table(
        "submissions",
        _id(),
        _fk("task_id", "tasks"),
        _fk("student_id", "users"),
        sa.Column("content", sa.Text(), nullable=False),
        _jsonb_list("files", "URLs of files the frontend uploaded to object storage"),
        sa.Column(
            "status",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'submitted'"),
            comment="submitted or graded",
        ),
        _timestamp("submitted_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("task_id", "student_id", name="uq_submissions_task_student"),
    )
    op.create_index("ix_submissions_task_id", "submissions", ["task_id"])
    op.create_index("ix_submissions_student_id", "submissions", ["student_id"])

    skills = op.create_table(
        "skills",
        _id(),
        sa.Column("name_en", sa.String(100), nullable=False),
        sa.Column("name_ar", sa.String(100), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name_en", name="uq_skills_name_en"),
    )

    op.create_table(
        "assessments",
        _id(),
        _fk("submission_id", "submissions"),
        sa.Column("overall_score", sa.Float(), nullable=True),
        sa.Column("feedback", sa.Text(), nullable=True),
        sa.Column(
            "ai_analysis",
            postgresql.JSONB(),
            nullable=True,
            comment="Full JSON object returned by the model",
        ),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_assessments_submission_id", "assessments", ["submission_id"])

    op.create_table(
        "skill_assessments",
        _id(),
        _fk("assessment_id", "assessments"),
        _fk("skill_id", "skills"),
        sa.Column("score", sa.Float(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_skill_assessments_assessment_id", "skill_assessments", ["assessment_id"])

    op.create_table(
        "recommendations",
        _id(),
        _fk("student_id", "users"),
        _fk("task_id", "tasks", nullable=True, ondelete="SET NULL"),
        _fk("skill_id", "skills", nullable=True, ondelete="SET NULL"),
        sa.Column("recommendation_text", sa.Text(), nullable=False, server_default=sa.text("''")),
        _jsonb_list("resources", "Suggested courses, books and videos"),
        sa.Column("priority", sa.String(10), nullable=False, server_default=sa.text("'medium'")),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_recommendations_student_id", "recommendations", ["student_id"])

    op.bulk_insert(
        skills,
        [{"id": uuid.uuid4(), "name_en": en, "name_ar": ar} for en, ar in SEED_SKILLS],
    )


def downgrade() -> None:
    """Drops every table in reverse dependency order."""
    op.drop_table("recommendations")
    op.drop_table("skill_assessments")
    op.drop_table("assessments")
    op.drop_table("skills")
    op.drop_index("ix_submissions_student_id", table_name="submissions")
    op.drop_index("ix_submissions_task_id", table_name="submissions")
    op.drop_table("submissions")
    op.drop_index("idx_tasks_teacher_created", table_name="tasks")
    op.drop_index("idx_tasks_school_created", table_name="tasks")
    op.drop_table("tasks")
    op.drop_index("ix_users_school_id", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    op.drop_index("ix_schools_code", table_name="schools")
    op.drop_table("schools")
