"""
User: back-office account. Employees are users with a non-developer role.
Only ACTIVE users can log in.
"""
import enum
from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, Enum
from arbati.db.base import Base


class UserRole(str, enum.Enum):
    DEVELOPER = "DEVELOPER"
    ADMIN = "ADMIN"
    EMPLOYEE = "EMPLOYEE"
    CASHIER = "CASHIER"
    VIEWER = "VIEWER"


class UserStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    DELETED = "DELETED"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False, default="")
    phone = Column(String(64), nullable=True)
    role = Column(Enum(UserRole, native_enum=False, length=32), nullable=False, default=UserRole.VIEWER)
    status = Column(Enum(UserStatus, native_enum=False, length=32), nullable=False, default=UserStatus.PENDING)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<User id={self.id} email={self.email} role={self.role}>"
