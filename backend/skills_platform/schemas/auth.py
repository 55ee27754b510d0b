"""
Registration and login schemas.

Emails only need to contain "@"; school-issued internal addresses are accepted.
"""

import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


def _check_email(value: str) -> str:
    value = value.strip()
    if "@" not in value:
        raise ValueError("Invalid email address")
    return value


class RegisterRequest(BaseModel):
    email: str = Field(min_length=1, max_length=320)
    full_name: str = Field(min_length=1, max_length=255)
    role: Literal["student", "teacher", "admin"]
    school_code: str = Field(min_length=1, max_length=64)

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        return _check_email(value)


class LoginRequest(BaseModel):
    email: str = Field(min_length=1, max_length=320)

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        return _check_email(value)


class SchoolName(BaseModel):
    name: str


class UserOut(BaseModel):
    id: uuid.UUID
    email: str
    full_name: str
    role: str
    school_id: uuid.UUID
    created_at: datetime
    last_login: Optional[datetime] = None
    school: Optional[SchoolName] = None

    model_config = {"from_attributes": True}


class UserEnvelope(BaseModel):
    success: bool = True
    user: UserOut
