from examhub.db import Base
from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, JSON
from sqlalchemy.dialects.postgresql import JSONB
from fastapi_users_db_sqlalchemy.generics import GUID
from datetime import datetime


class PreviousQuestionSet(Base):
    __tablename__ = "previous_question_sets"

    pqs_id = Column(Integer, primary_key=True, autoincrement=True)
    course = Column(String(50), nullable=False)
    subject_mode = Column(String(10), nullable=False)  # single / multiple
    subjects = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=list)
    exam_conducted_on = Column(Date, nullable=True)
    resource_url = Column(String(1024), nullable=False)
    notes = Column(Text, nullable=True)
    # owner; only this user may delete the record
    uploaded_by = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
