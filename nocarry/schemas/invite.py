"""Pydantic schemas for invites."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from nocarry.models.project import ProjectRole
from nocarry.models.user import GlobalRole


class InviteCreate(BaseModel):
    email: str
    role: ProjectRole = ProjectRole.STUDENT


class InviteeLookupOut(BaseModel):
    name: Optional[str] = None
    global_role: Optional[GlobalRole] = None
    allowed_project_roles: list[ProjectRole]
    is_new_account: bool


class InviteResult(BaseModel):
    name: Optional[str] = None
    added: Optional[bool] = None
    updated: Optional[bool] = None
    invited: Optional[bool] = None
    email: Optional[str] = None
    link: Optional[str] = None
    email_sent: Optional[bool] = None


class InvitePreviewOut(BaseModel):
    project_id: str
    project_name: str
    course_code: Optional[str] = None
    role: ProjectRole
    inviter_name: str
    email: str
    expires_at: datetime


class InviteAcceptOut(BaseModel):
    project_id: str
