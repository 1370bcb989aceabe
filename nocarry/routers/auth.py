"""Account registration routes."""
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from nocarry.auth import Identity, get_current_user, get_identity
from nocarry.database import get_db
from nocarry.errors import Conflict
from nocarry.models.user import User
from nocarry.schemas.user import RegisterOut, RegisterRequest, UserOut
from nocarry.services import invite_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/register", response_model=RegisterOut, status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    """Create the account for an authenticated identity and join any projects
    it was invited to before signing up."""
    duplicate = (
        db.query(User)
        .filter((User.user_id == identity.id) | (func.lower(User.email) == identity.email.lower()))
        .first()
    )
    if duplicate:
        raise Conflict("User already exists")

    user = User(
        user_id=identity.id,
        email=identity.email,
        name=payload.name.strip(),
        global_role=payload.global_role,
    )
    db.add(user)
    try:
        db.flush()
        joined = invite_service.consume_pending_invites_on_signup(db, user)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("User already exists")
    db.refresh(user)
    logger.info("Registered user %s (%s) as %s", user.user_id, user.email, user.global_role.value)

    out = RegisterOut.model_validate(user)
    out.projects_joined = joined
    return out


@router.get("/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)):
    return user
