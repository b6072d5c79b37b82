from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from typing import Optional, List, Literal
from datetime import date, datetime
from uuid import UUID

from ..services.resource_service import normalize_subjects


class SubjectName(BaseModel):
    name: str = ""


class PreviousQuestionCreate(BaseModel):
    course: str
    subject_mode: Literal["single", "multiple"]
    subjects: List[SubjectName]
    exam_conducted_on: Optional[date] = None
    resource_url: str
    notes: Optional[str] = None

    @field_validator("course", "resource_url")
    def not_blank(cls, v):
        v = (v or "").strip()
        if not v:
            raise ValueError("Missing required fields.")
        return v

    @model_validator(mode="after")
    def subjects_match_mode(self):
        names = normalize_subjects(self.subject_mode, [s.name for s in self.subjects])
        self.subjects = [SubjectName(name=n) for n in names]
        return self


class PreviousQuestionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    pqs_id: int
    course: str
    subject_mode: str
    subjects: List[SubjectName]
    exam_conducted_on: Optional[date] = None
    resource_url: str
    notes: Optional[str] = None
    uploaded_by: UUID
    created_at: Optional[datetime] = None


class PreviousQuestionRow(PreviousQuestionRead):
    uploader_username: Optional[str] = None
    uploader_name: Optional[str] = None


class PreviousQuestionPage(BaseModel):
    data: List[PreviousQuestionRow]
    page: int
    pageSize: int
    total: int
