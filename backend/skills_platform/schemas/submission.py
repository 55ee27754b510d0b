"""Submission request/response schemas."""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class SubmissionCreate(BaseModel):
    task_id: uuid.UUID
    student_id: uuid.UUID
    content: str = Field(min_length=1)
    files: Optional[list] = None


class SubmissionOut(BaseModel):
    id: uuid.UUID
    task_id: uuid.UUID
    student_id: uuid.UUID
    content: str
    files: list = Field(default_factory=list)
    status: str
    submitted_at: datetime

    model_config = {"from_attributes": True}


class SkillNames(BaseModel):
    name_en: str
    name_ar: str


class SkillScoreOut(BaseModel):
    score: float
    # Named after the table, matching what the frontend already reads
    skills: SkillNames


class AssessmentOut(BaseModel):
    overall_score: Optional[float] = None
    feedback: Optional[str] = None
    skill_assessments: List[SkillScoreOut] = Field(default_factory=list)


class StudentBrief(BaseModel):
    id: uuid.UUID
    full_name: str
    email: str


class SubmissionDetailOut(SubmissionOut):
    student: Optional[StudentBrief] = None
    assessments: List[AssessmentOut] = Field(default_factory=list)


class SubmissionEnvelope(BaseModel):
    success: bool = True
    submission: SubmissionOut


class SubmissionListEnvelope(BaseModel):
    success: bool = True
    submissions: List[SubmissionDetailOut]
