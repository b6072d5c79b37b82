from pydantic import BaseModel, ConfigDict, field_validator
from typing import Optional, Literal
from datetime import datetime
from uuid import UUID

from ..services.media_service import clean_media_url, clean_video_url


AnnouncementType = Literal["announcement", "poster", "video"]
Priority = Literal["high", "medium", "low"]
Audience = Literal["All Students", "IIT Students", "NEET Students"]
AnnouncementStatus = Literal["active", "scheduled", "expired", "draft"]


class AnnouncementBase(BaseModel):
    title: str
    content: str
    media_url: Optional[str] = None
    video_url: Optional[str] = None
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    @field_validator("title", "content")
    def not_blank(cls, v):
        v = (v or "").strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("media_url")
    def validate_media_url(cls, v):
        return clean_media_url(v)

    @field_validator("video_url")
    def validate_video_url(cls, v):
        return clean_video_url(v)


class AnnouncementCreate(AnnouncementBase):
    announcement_type: AnnouncementType
    priority: Priority
    target_audience: Audience
    status: AnnouncementStatus


class AnnouncementUpdate(AnnouncementBase):
    announcement_type: Optional[AnnouncementType] = None
    priority: Optional[Priority] = None
    target_audience: Optional[Audience] = None
    status: Optional[AnnouncementStatus] = None


class AnnouncementRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    announcement_id: int
    title: str
    content: str
    announcement_type: str
    media_url: Optional[str] = None
    video_url: Optional[str] = None
    priority: str
    target_audience: str
    status: str
    views: int = 0
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    created_by: Optional[UUID] = None
