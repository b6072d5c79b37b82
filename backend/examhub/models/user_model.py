from ..db import Base
from sqlalchemy import String
from sqlalchemy import Column, DateTime, Integer, ForeignKey, Enum as SQLAlchemyEnum
from fastapi_users.db import SQLAlchemyBaseUserTableUUID
from datetime import datetime
import enum

"""
Users table. Admins and students share it; role tells them apart.
| Column | Type | Notes |
| :--- | :--- | :--- |
| `id` | UUID | fastapi-users primary key |
| `role` | ENUM | `admin` / `student` |
| `role_id` | INTEGER | FK -> roles, narrows an admin to a role's permissions |
| `student_id`, `username` | VARCHAR | unique when present |
| `status` | VARCHAR | `active` / `inactive` / `suspended` |
| `state`, `district`, `region`, `college` | VARCHAR | roster filters |
"""


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    STUDENT = "student"


class UserStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class User(SQLAlchemyBaseUserTableUUID, Base):
    __tablename__ = "users"
    full_name = Column(String)
    role = Column(SQLAlchemyEnum(UserRole, values_callable=lambda e: [m.value for m in e]), default=UserRole.STUDENT)
    role_id = Column(Integer, ForeignKey("roles.role_id", ondelete="RESTRICT"), nullable=True)

    student_id = Column(String(64), unique=True, nullable=True)
    username = Column(String(100), unique=True, nullable=True)
    status = Column(String(20), default=UserStatus.ACTIVE.value, nullable=False)
    state = Column(String(100), nullable=True)
    district = Column(String(100), nullable=True)
    region = Column(String(100), nullable=True)
    college = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
