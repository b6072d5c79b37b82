from examhub.db import Base
from sqlalchemy import Column, String, DateTime, ForeignKey, JSON
from sqlalchemy.dialects.postgresql import JSONB
from fastapi_users_db_sqlalchemy.generics import GUID
from datetime import datetime


class Setting(Base):
    __tablename__ = "settings"

    setting_key = Column(String(100), primary_key=True)
    setting_value = Column(JSON().with_variant(JSONB, "postgresql"), nullable=True)
    updated_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
