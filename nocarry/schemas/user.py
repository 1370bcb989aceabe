"""Pydantic schemas for Users and profiles."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from nocarry.models.user import GlobalRole


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=150)
    global_role: GlobalRole = GlobalRole.STUDENT


class ProfileUpdate(BaseModel):
    """Partial update: omitted fields are left alone, null clears them."""

    name: Optional[str] = None
    preferred_name: Optional[str] = None
    bio: Optional[str] = None
    school: Optional[str] = None
    major: Optional[str] = None
    github_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    avatar_url: Optional[str] = None
    status: Optional[str] = None
    status_expires_at: Optional[datetime] = None


class UserSummary(BaseModel):
    user_id: str
    name: str
    preferred_name: Optional[str] = None
    avatar_url: Optional[str] = None

    model_config = {"from_attributes": True}


class UserOut(BaseModel):
    user_id: str
    email: str
    name: str
    preferred_name: Optional[str] = None
    global_role: GlobalRole
    bio: Optional[str] = None
    school: Optional[str] = None
    major: Optional[str] = None
    github_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    avatar_url: Optional[str] = None
    status: Optional[str] = None
    status_expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class RegisterOut(UserOut):
    projects_joined: int = 0
