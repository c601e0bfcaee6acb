from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime

from arbati.models.user import UserRole, UserStatus


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    id: int
    email: str
    name: str
    phone: Optional[str] = None
    role: UserRole
    status: UserStatus
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EmployeeCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    name: str = Field(..., min_length=1)
    phone: Optional[str] = None
    role: UserRole = UserRole.EMPLOYEE
    status: UserStatus = UserStatus.ACTIVE


class EmployeeUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[UserRole] = None
    status: Optional[UserStatus] = None
    password: Optional[str] = Field(None, min_length=8)
