"""Authentication and user schemas"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from app.models.user import UserRole


class Token(BaseModel):
    """JWT token response"""
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: "UserResponse"


class UserCreate(BaseModel):
    """Create user request"""
    matricule: str = Field(..., min_length=1)
    full_name: Optional[str] = None
    email: Optional[EmailStr] = None
    role: UserRole = UserRole.USER
    password: Optional[str] = None
    is_active: bool = True


class UserUpdate(BaseModel):
    """Update user request"""
    full_name: Optional[str] = None
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None
    password: Optional[str] = None
    is_active: Optional[bool] = None


class UserResponse(BaseModel):
    """User response"""
    id: int
    matricule: str
    full_name: Optional[str]
    email: Optional[str]
    role: UserRole
    is_active: bool
    created_at: datetime
    last_login: Optional[datetime]

    class Config:
        from_attributes = True


Token.model_rebuild()
