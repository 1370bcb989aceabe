"""Pydantic schemas for activity feeds."""
from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel


class ActivityOut(BaseModel):
    log_id: str
    actor_id: str
    actor_name: str
    actor_avatar: Optional[str] = None
    action: str
    label: str
    project_id: str
    project_name: str
    task_id: Optional[str] = None
    metadata: dict[str, Any] = {}
    created_at: datetime
