"""Pydantic schemas for project files."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from nocarry.schemas.user import UserSummary


class FileCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    url: str = Field(min_length=1, max_length=1000)
    size: Optional[int] = None
    mime_type: Optional[str] = None


class FileOut(BaseModel):
    file_id: str
    project_id: str
    uploaded_by_id: str
    uploaded_by: Optional[UserSummary] = None
    name: str
    url: str
    size: Optional[int] = None
    mime_type: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}
