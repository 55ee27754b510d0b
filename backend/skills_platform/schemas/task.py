"""
Task request/response schemas.

Student and teacher listings extend the base task shape with per-viewer
fields: the student sees their own submission state, the teacher sees
submission counts.
"""

import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class TaskCreate(BaseModel):
    teacher_id: uuid.UUID
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    questions: Optional[List[str]] = None
    due_date: datetime


class TaskStatusUpdate(BaseModel):
    status: Literal["active", "cancelled"]


class TaskOut(BaseModel):
    id: uuid.UUID
    teacher_id: uuid.UUID
    school_id: uuid.UUID
    title: str
    description: str
    questions: List[str] = Field(default_factory=list)
    due_date: datetime
    status: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class TeacherName(BaseModel):
    full_name: str


class StudentTaskOut(TaskOut):
    teacher: Optional[TeacherName] = None
    submission_status: str = Field(description="submitted, graded, or pending when not answered")
    submission_id: Optional[uuid.UUID] = None


class TeacherTaskOut(TaskOut):
    total_submissions: int = 0
    graded: int = 0
    pending: int = Field(default=0, description="Submissions waiting to be graded")


class TaskEnvelope(BaseModel):
    success: bool = True
    task: TaskOut


class StudentTaskListEnvelope(BaseModel):
    success: bool = True
    tasks: List[StudentTaskOut]


class TeacherTaskListEnvelope(BaseModel):
    success: bool = True
    tasks: List[TeacherTaskOut]
