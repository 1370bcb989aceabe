"""Pydantic schemas for Projects and memberships."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from nocarry.models.project import ProjectRole
from nocarry.schemas.task import TaskOut
from nocarry.schemas.user import UserSummary


class ProjectCreate(BaseModel):
    name: str = Field(min_length=1, max_length=150)
    description: Optional[str] = None
    course_code: Optional[str] = None


class MemberOut(BaseModel):
    member_id: str
    user_id: str
    role: ProjectRole
    joined_at: Optional[datetime] = None
    user: UserSummary

    model_config = {"from_attributes": True}


class ProjectOut(BaseModel):
    project_id: str
    name: str
    description: Optional[str] = None
    course_code: Optional[str] = None
    owner_id: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ProjectDetailOut(ProjectOut):
    members: list[MemberOut] = []
    tasks: list[TaskOut] = []


class CourseOut(BaseModel):
    course_code: str
    projects: list[ProjectDetailOut] = []
