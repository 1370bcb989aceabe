"""Cross-project activity feed."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from nocarry.auth import get_current_user
from nocarry.database import get_db
from nocarry.models.user import User
from nocarry.schemas.activity import ActivityOut
from nocarry.services import activity_service

router = APIRouter()


@router.get("", response_model=list[ActivityOut])
def my_activity(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Latest activity in every project the caller belongs to."""
    return activity_service.user_feed(db, user.user_id)
