from pydantic import BaseModel, ConfigDict, field_validator
from typing import Optional, Literal


class FaqRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    faq_id: int
    question: str
    answer: str
    category: Optional[str] = None


class GuideRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    guide_id: int
    title: str
    content: str
    category: Optional[str] = None


class HelpVideoRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    video_id: int
    title: str
    video_url: str
    thumbnail_url: Optional[str] = None


class TicketCreate(BaseModel):
    issue_type: Literal["Technical Issue", "Account Problem", "Feature Request", "Other"]
    description: str

    @field_validator("description")
    def not_blank(cls, v):
        v = (v or "").strip()
        if not v:
            raise ValueError("description must not be empty")
        return v


class TicketRead(BaseModel):
    ticket_id: int
    issue_type: str
    description: str
    status: str
