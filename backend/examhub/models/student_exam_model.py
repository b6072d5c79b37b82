from examhub.db import Base
from sqlalchemy import Column, Integer, Float, String, DateTime, ForeignKey, UniqueConstraint
from fastapi_users_db_sqlalchemy.generics import GUID
from datetime import datetime
import enum


class AttemptStatus(str, enum.Enum):
    REGISTERED = "registered"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABSENT = "absent"


class StudentExam(Base):
    __tablename__ = "student_exams"
    __table_args__ = (UniqueConstraint("user_id", "exam_id", name="uq_student_exam"),)

    student_exam_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    exam_id = Column(Integer, ForeignKey("exams.exam_id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), default=AttemptStatus.REGISTERED.value, nullable=False)
    score = Column(Float, nullable=True)
    percentage = Column(Float, nullable=True)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)


class StudentExamSubject(Base):
    __tablename__ = "student_exam_subjects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_exam_id = Column(
        Integer, ForeignKey("student_exams.student_exam_id", ondelete="CASCADE"), nullable=False, index=True
    )
    # exam subject rows keep their ids across exam edits, so this reference stays valid
    exam_subject_id = Column(
        Integer, ForeignKey("exam_subjects.exam_subject_id", ondelete="CASCADE"), nullable=False
    )
    score = Column(Float, nullable=True)
    percentage = Column(Float, nullable=True)
