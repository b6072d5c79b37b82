from pydantic import BaseModel, ConfigDict, EmailStr, field_validator
from typing import Optional
from datetime import datetime, date, time
from uuid import UUID

from ..models.user_model import UserStatus


def _strip_required(v):
    v = (v or "").strip()
    if not v:
        raise ValueError("must not be empty")
    return v


class StudentCreate(BaseModel):
    student_id: str
    username: str
    email: EmailStr
    password: str
    full_name: str
    state: Optional[str] = None
    district: Optional[str] = None
    region: Optional[str] = None
    college: Optional[str] = None

    @field_validator("student_id", "username", "full_name")
    def required_text(cls, v):
        return _strip_required(v)

    @field_validator("password")
    def password_length(cls, v):
        if len(v or "") < 6:
            raise ValueError("password must be at least 6 characters")
        return v


class StudentStatusUpdate(BaseModel):
    status: UserStatus


class StudentDetailsUpdate(BaseModel):
    student_id: str
    username: str
    email: EmailStr
    full_name: str
    status: UserStatus
    state: Optional[str] = None
    district: Optional[str] = None
    region: Optional[str] = None
    college: Optional[str] = None

    @field_validator("student_id", "username", "full_name")
    def required_text(cls, v):
        return _strip_required(v)


class StudentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    student_id: Optional[str] = None
    username: Optional[str] = None
    email: str
    full_name: Optional[str] = None
    status: str
    state: Optional[str] = None
    district: Optional[str] = None
    region: Optional[str] = None
    college: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class StudentSummary(StudentRead):
    exams_taken: int = 0
    average_percentage: float = 0.0
    preference: str = "N/A"
    last_active: Optional[datetime] = None


class StudentExamRow(BaseModel):
    student_exam_id: int
    exam_id: int
    title: str
    exam_type: str
    start_date: date
    start_time: time
    status: str
    score: Optional[float] = None
    percentage: Optional[float] = None
    completed_at: Optional[datetime] = None
