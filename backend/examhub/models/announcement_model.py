from examhub.db import Base
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from fastapi_users_db_sqlalchemy.generics import GUID
from datetime import datetime


class Announcement(Base):
    __tablename__ = "announcements"

    announcement_id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    announcement_type = Column(String(20), nullable=False, default="announcement")
    # only normalised public URLs are stored, never file bytes
    media_url = Column(String(1024), nullable=True)
    video_url = Column(String(1024), nullable=True)
    priority = Column(String(10), nullable=False, default="medium")
    target_audience = Column(String(50), nullable=False, default="All Students")
    status = Column(String(20), nullable=False, default="draft")
    views = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    expires_at = Column(DateTime, nullable=True)
    created_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
