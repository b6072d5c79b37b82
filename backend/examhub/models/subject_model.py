from examhub.db import Base
from sqlalchemy import Column, Integer, String, Text, Boolean


class Subject(Base):
    __tablename__ = "subjects"

    subject_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    code = Column(String(20), nullable=False)
    description = Column(Text, nullable=True)
    exam_type = Column(String(10), nullable=False)  # IIT / NEET
    is_active = Column(Boolean, nullable=False, default=True)
