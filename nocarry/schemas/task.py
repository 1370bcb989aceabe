"""Pydantic schemas for Tasks and the board."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from nocarry.models.task import TaskStatus
from nocarry.schemas.user import UserSummary


class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    assignee_id: Optional[str] = None
    due_date: Optional[datetime] = None


class TaskUpdate(BaseModel):
    """Only the fields present in the request body are applied."""

    status: Optional[TaskStatus] = None
    title: Optional[str] = None
    description: Optional[str] = None
    assignee_id: Optional[str] = None
    due_date: Optional[datetime] = None


class TaskOut(BaseModel):
    task_id: str
    project_id: str
    title: str
    description: Optional[str] = None
    status: TaskStatus
    assignee_id: Optional[str] = None
    assignee: Optional[UserSummary] = None
    created_by_id: str
    due_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class BoardOut(BaseModel):
    todo: list[TaskOut] = []
    in_progress: list[TaskOut] = []
    done: list[TaskOut] = []
    history: list[TaskOut] = []
