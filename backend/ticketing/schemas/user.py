"""
Pydantic schemas for user, authentication and password reset payloads.
"""

import uuid
from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, EmailStr, Field

from ticketing.models.user import UserRole
from ticketing.schemas.common import Address


class UserCreate(Address):
    name: str = Field(..., min_length=3, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=100)
    role: Literal["student", "organizer"] = "student"


class UserUpdate(Address):
    name: str = Field(..., min_length=3, max_length=100)
    email: EmailStr
    role: UserRole
    is_active: bool = True
    password: Optional[str] = Field(None, min_length=6, max_length=100)


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserResponse(Address):
    id: uuid.UUID
    name: str
    email: str
    role: UserRole
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordResetConfirm(BaseModel):
    email: EmailStr
    token: str = Field(..., min_length=6, max_length=8)
    password: str = Field(..., min_length=6, max_length=100)
