"""
User schemas.
"""

from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from .base import ApiModel
from .enums import UserRole


class UserModel(ApiModel):
    id: str
    name: str
    email: str
    photo: Optional[str] = None
    role: UserRole
    created_at: datetime


class NewUserRequest(ApiModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    photo: Optional[str] = None
    role: UserRole = UserRole.USER
