"""
AI route schemas.

Request bodies use the camelCase keys the frontend sends (submissionId,
studentId, taskId); snake_case is accepted too. Response payloads are the
JSON objects extracted from the model reply, passed through as dicts
because their shape is only as reliable as the model.
"""

import uuid
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _CamelRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class GradeSubmissionRequest(_CamelRequest):
    submission_id: uuid.UUID = Field(alias="submissionId")


class RecommendationsRequest(_CamelRequest):
    student_id: uuid.UUID = Field(alias="studentId")
    task_id: uuid.UUID = Field(alias="taskId")


class AnalyzePerformanceRequest(_CamelRequest):
    student_id: uuid.UUID = Field(alias="studentId")


class EvaluateTaskRequest(_CamelRequest):
    task_id: uuid.UUID = Field(alias="taskId")
    submission_id: Optional[uuid.UUID] = Field(default=None, alias="submissionId")


class GradingEnvelope(BaseModel):
    success: bool = True
    grading: Dict[str, Any]


class RecommendationsEnvelope(BaseModel):
    success: bool = True
    recommendations: Dict[str, Any]


class AnalysisEnvelope(BaseModel):
    success: bool = True
    analysis: Dict[str, Any]
    skill_scores: Dict[str, float]
    weak_skills: List[str]


class EvaluationEnvelope(BaseModel):
    success: bool = True
    evaluation: Dict[str, Any]
