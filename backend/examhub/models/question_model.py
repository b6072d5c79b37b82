from examhub.db import Base
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey
from datetime import datetime


MCQ = "mcq"


class Question(Base):
    __tablename__ = "questions"

    question_id = Column(Integer, primary_key=True, autoincrement=True)
    exam_id = Column(Integer, ForeignKey("exams.exam_id", ondelete="CASCADE"), nullable=False, index=True)
    question_text = Column(Text, nullable=False)
    # mcq / descriptive / numerical or any other lower-cased label
    question_type = Column(String(50), nullable=False)
    difficulty = Column(String(20), nullable=False)
    marks = Column(Integer, nullable=False, default=1)
    explanation = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class QuestionOption(Base):
    __tablename__ = "question_options"

    option_id = Column(Integer, primary_key=True, autoincrement=True)
    question_id = Column(Integer, ForeignKey("questions.question_id", ondelete="CASCADE"), nullable=False, index=True)
    option_text = Column(Text, nullable=False, default="")
    is_correct = Column(Boolean, nullable=False, default=False)
    option_order = Column(Integer, nullable=False, default=0)
