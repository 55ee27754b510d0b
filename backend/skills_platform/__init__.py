"""
Skills Platform Backend
=======================

What: REST backend of the 21st-century skills platform: schools, users,
      tasks, submissions, performance dashboards and AI grading.
Who:  Imported by uvicorn (`skills_platform.main:app`), Alembic and pytest.

Architecture Note:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Queries, rules, Gemini calls
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Hosted PostgreSQL (Supabase)
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
