"""Profile routes for the signed-in user."""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from nocarry.auth import get_current_user
from nocarry.database import get_db
from nocarry.models.user import User
from nocarry.schemas.user import ProfileUpdate, UserOut

logger = logging.getLogger(__name__)
router = APIRouter()

# An empty string clears these instead of being stored
BLANK_MEANS_NULL = {"name", "preferred_name", "status"}


@router.get("", response_model=UserOut)
def get_profile(user: User = Depends(get_current_user)):
    return user


@router.patch("", response_model=UserOut)
def update_profile(
    payload: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update profile fields (partial update)."""
    updates = payload.model_dump(exclude_unset=True)
    for field, value in updates.items():
        if field in BLANK_MEANS_NULL and value == "":
            value = None
        if field == "name" and value is None:
            # name is required on the account; clearing it keeps the old one
            continue
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    logger.info("Updated profile %s fields=%s", user.user_id, sorted(updates))
    return user
