"""Invite routes: project-side invitation and token-side preview/accept."""
import logging
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from nocarry.auth import get_current_user
from nocarry.database import get_db
from nocarry.models.user import User
from nocarry.schemas.invite import (
    InviteAcceptOut,
    InviteCreate,
    InviteeLookupOut,
    InvitePreviewOut,
    InviteResult,
)
from nocarry.services import invite_service
from nocarry.services.permissions import require_member

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/projects/{project_id}/invite", response_model=InviteeLookupOut)
def lookup_invitee(
    project_id: str,
    email: str = Query(..., min_length=1),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Which roles the given email may be invited with."""
    require_member(db, project_id, user.user_id)
    return invite_service.lookup_invitee(db, project_id, email)


@router.post("/projects/{project_id}/invite", response_model=InviteResult, response_model_exclude_none=True)
def invite_member(
    project_id: str,
    payload: InviteCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Add or re-role an existing account, or send a pending invite to a new email."""
    return invite_service.create_or_update_membership(
        db=db,
        project_id=project_id,
        email=payload.email,
        requested_role=payload.role,
        inviter=user,
    )


@router.get("/invite/{token}", response_model=InvitePreviewOut)
def preview_invite(token: str, db: Session = Depends(get_db)):
    """Public: invite details for the landing page, no sign-in needed."""
    return invite_service.preview_invite(db, token)


@router.post("/invite/{token}", response_model=InviteAcceptOut)
def accept_invite(token: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    project_id = invite_service.accept_invite(db, token, user)
    return {"project_id": project_id}
