from pydantic import BaseModel, ConfigDict, field_validator
from typing import Optional, Literal


ExamType = Literal["IIT", "NEET"]


class SubjectCreate(BaseModel):
    name: str
    code: str
    description: Optional[str] = None
    exam_type: ExamType
    is_active: bool

    @field_validator("name", "code")
    def not_blank(cls, v):
        v = (v or "").strip()
        if not v:
            raise ValueError("must not be empty")
        return v


class SubjectUpdate(BaseModel):
    name: Optional[str] = None
    code: Optional[str] = None
    description: Optional[str] = None
    exam_type: Optional[ExamType] = None
    is_active: Optional[bool] = None

    @field_validator("name", "code")
    def strip(cls, v):
        return v.strip() if v is not None else v


class SubjectRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    subject_id: int
    name: str
    code: str
    description: Optional[str] = None
    exam_type: str
    is_active: bool
