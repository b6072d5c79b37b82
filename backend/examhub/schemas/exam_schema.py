from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Optional, List
from datetime import date, time, datetime
from uuid import UUID

from ..models.exam_model import ExamFormat, ExamStatus, is_realtime_category


class ExamSubjectIn(BaseModel):
    subject: str
    marks: int = Field(0, ge=0)

    @field_validator("subject")
    def subject_not_blank(cls, v):
        v = (v or "").strip()
        if not v:
            raise ValueError("subject name must not be empty")
        return v


class ExamSubjectRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    exam_subject_id: int
    exam_id: int
    subject: str
    marks: int


class ExamCreate(BaseModel):
    title: str
    exam_type: str
    exam_format: ExamFormat
    total_marks: int
    duration: int
    start_date: date
    start_time: time
    venue: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    set_type: Optional[str] = None
    subjects: List[ExamSubjectIn] = []

    @field_validator("title", "exam_type")
    def required_text(cls, v):
        v = (v or "").strip()
        if not v:
            raise ValueError("Missing required fields")
        return v

    @field_validator("total_marks", "duration")
    def must_be_positive(cls, v):
        if v is None or v <= 0:
            raise ValueError("must be a positive integer")
        return v

    @field_validator("set_type", "category")
    def blank_to_none(cls, v):
        if v is None:
            return None
        v = v.strip()
        return v or None

    @model_validator(mode="after")
    def realtime_needs_set_type(self):
        if is_realtime_category(self.category):
            if not self.set_type:
                raise ValueError("set_type is required for Realtime exams")
        else:
            # only realtime exams form set groups
            self.set_type = None
        return self

    @field_validator("subjects")
    def unique_subject_names(cls, v):
        names = [s.subject.lower() for s in v]
        if len(set(names)) != len(names):
            raise ValueError("Duplicate subject names are not allowed")
        return v


class ExamUpdate(ExamCreate):
    status: Optional[ExamStatus] = None


class CloneSetRequest(BaseModel):
    set_type: Optional[str] = None


class RegisterStudentsRequest(BaseModel):
    user_ids: List[UUID]


class ExamRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    exam_id: int
    title: str
    exam_type: str
    exam_format: str
    total_marks: int
    duration: int
    start_date: date
    start_time: time
    venue: Optional[str] = None
    status: str
    description: Optional[str] = None
    category: Optional[str] = None
    set_type: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ExamListItem(ExamRead):
    subjects: List[str] = []
    subject_count: int = 0
    participants_count: int = 0
    questions_count: int = 0


class ExamDetail(ExamRead):
    subjects: List[ExamSubjectRead] = []
