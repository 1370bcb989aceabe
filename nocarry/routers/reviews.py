"""Peer review routes."""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from nocarry.auth import get_current_user
from nocarry.database import get_db
from nocarry.errors import NotFound, ValidationError
from nocarry.models.peer_review import RATING_FIELDS, PeerReview
from nocarry.models.user import User
from nocarry.schemas.review import ReviewCreate, ReviewOut
from nocarry.services.permissions import get_membership, require_member

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/{project_id}/reviews", response_model=list[ReviewOut])
def list_my_reviews(project_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Reviews the caller has written in this project."""
    require_member(db, project_id, user.user_id)
    return (
        db.query(PeerReview)
        .filter(PeerReview.project_id == project_id, PeerReview.reviewer_id == user.user_id)
        .all()
    )


@router.post("/{project_id}/reviews", response_model=ReviewOut)
def submit_review(
    project_id: str,
    payload: ReviewCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create or replace the caller's review of a teammate."""
    require_member(db, project_id, user.user_id)
    if payload.receiver_id == user.user_id:
        raise ValidationError("You cannot review yourself.")
    if not get_membership(db, project_id, payload.receiver_id):
        raise NotFound("Team member not found")

    review = (
        db.query(PeerReview)
        .filter(
            PeerReview.project_id == project_id,
            PeerReview.reviewer_id == user.user_id,
            PeerReview.receiver_id == payload.receiver_id,
        )
        .first()
    )
    if review is None:
        review = PeerReview(project_id=project_id, reviewer_id=user.user_id, receiver_id=payload.receiver_id)
        db.add(review)
    for field in RATING_FIELDS:
        setattr(review, field, getattr(payload, field))
    review.comment = payload.comment or None
    db.commit()
    db.refresh(review)
    logger.info("User %s reviewed %s in project %s", user.user_id, payload.receiver_id, project_id)
    return review
