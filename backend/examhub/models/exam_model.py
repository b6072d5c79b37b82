from examhub.db import Base
from sqlalchemy import String


"""
Exams and ExamSubjects
| Column | Type | Notes |
| :--- | :--- | :--- |
| `exam_id` | INTEGER | Primary Key |
| `title` | VARCHAR | |
| `exam_type` | VARCHAR | free text, e.g. IIT / NEET |
| `exam_format` | VARCHAR | `single` / `comprehensive` |
| `total_marks` | INTEGER | |
| `duration` | INTEGER | In minutes |
| `start_date` | DATE | |
| `start_time` | TIME | |
| `status` | VARCHAR | `draft` / `scheduled` / `active` / `completed` / `cancelled` |
| `category` | VARCHAR | free text, `realtime` groups sibling sets |
| `set_type` | VARCHAR | required for realtime exams, NULL otherwise |

Realtime groups are rows sharing (title, start_date, category); the unique
index below keeps each set_type once per group.

### ExamSubjects
| Column | Type | Notes |
| :--- | :--- | :--- |
| `exam_subject_id` | INTEGER | Primary Key |
| `exam_id` | INTEGER | FK -> Exams |
| `subject` | VARCHAR | |
| `marks` | INTEGER | |
"""

from sqlalchemy import Column, Integer, Text, Date, Time, DateTime, ForeignKey, UniqueConstraint
from datetime import datetime
import enum


REALTIME_CATEGORY = "realtime"
DEFAULT_VENUE = "Online Platform"


class ExamFormat(str, enum.Enum):
    SINGLE = "single"
    COMPREHENSIVE = "comprehensive"


class ExamStatus(str, enum.Enum):
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Exam(Base):
    __tablename__ = "exams"
    __table_args__ = (
        UniqueConstraint("title", "start_date", "category", "set_type", name="uq_exam_group_set"),
    )

    exam_id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    exam_type = Column(String(50), nullable=False)
    exam_format = Column(String(20), nullable=False)
    total_marks = Column(Integer, nullable=False)
    duration = Column(Integer, nullable=False)  # in minutes
    start_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    venue = Column(String(255), default=DEFAULT_VENUE)
    status = Column(String(20), default=ExamStatus.SCHEDULED.value, nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(50), nullable=True)
    set_type = Column(String(50), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_realtime(self) -> bool:
        return is_realtime_category(self.category)


class ExamSubject(Base):
    __tablename__ = "exam_subjects"

    exam_subject_id = Column(Integer, primary_key=True, autoincrement=True)
    exam_id = Column(Integer, ForeignKey("exams.exam_id", ondelete="CASCADE"), nullable=False, index=True)
    subject = Column(String(100), nullable=False)
    marks = Column(Integer, nullable=False, default=0)


def is_realtime_category(category) -> bool:
    return str(category or "").strip().lower() == REALTIME_CATEGORY
