from pydantic import BaseModel
from typing import Optional, List
from datetime import date


class ResultRow(BaseModel):
    full_name: Optional[str] = None
    state: Optional[str] = None
    district: Optional[str] = None
    exam_id: int
    exam_title: str
    exam_type: str
    category: Optional[str] = None
    total_marks: int
    student_exam_id: int
    subject: str
    score: Optional[float] = None
    percentage: Optional[float] = None
    completed_on: Optional[str] = None
    time_spent: str
    ranking: int
    state_rank: int
    district_rank: int
    global_rank: int


class SubjectScore(BaseModel):
    subject: str
    score: Optional[float] = None
    percentage: Optional[float] = None


class SubjectsList(BaseModel):
    subjects: List[str]


class DashboardStats(BaseModel):
    total_students: int
    total_exams: int
    avg_score: float
    completion_rate: float


class RecentExam(BaseModel):
    exam_id: int
    title: str
    exam_type: str
    start_date: date
    status: str
    participants: int
