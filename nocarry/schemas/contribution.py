"""Pydantic schemas for contribution scores."""
from typing import Optional
from pydantic import BaseModel


class BreakdownOut(BaseModel):
    tasks_completed: int
    tasks_in_progress: int
    tasks_created: int
    other_actions: int

    model_config = {"from_attributes": True}


class ContributionOut(BaseModel):
    user_id: str
    name: str
    role: str
    points: float
    percentage: int
    breakdown: BreakdownOut
    average_peer_rating: Optional[float] = None
    reviews_received: int = 0

    model_config = {"from_attributes": True}
