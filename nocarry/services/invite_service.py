"""Invitation manager: memberships, pending invites and their consumption.

Rules:
- A professor account may hold PROFESSOR or TEAM_LEADER in a project, any
  other account STUDENT or TEAM_LEADER. An email with no account yet may be
  invited with any role.
- Existing accounts are added (or have their role changed) immediately.
  Unknown emails get a pending invite with a single-use token that expires
  after ``INVITE_TTL_DAYS``.
- Consuming an invite is a guarded update on ``used_at IS NULL``; the
  membership insert happens in the same transaction, so a replayed or
  concurrent accept can never produce a second membership.
- Email comparison is case-insensitive throughout.
"""
import logging
import secrets
from datetime import timedelta
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from nocarry.config import settings
from nocarry.database import as_utc, utcnow
from nocarry.errors import (
    AlreadyMember,
    AlreadyUsed,
    EmailMismatch,
    Expired,
    Forbidden,
    NotFound,
    RoleNotAllowed,
    ValidationError,
)
from nocarry.models.activity_log import ActivityAction
from nocarry.models.invite import ProjectInvite
from nocarry.models.project import ROLE_LABELS, Project, ProjectMember, ProjectRole
from nocarry.models.user import User
from nocarry.services import activity_service, email_service
from nocarry.services.permissions import (
    allowed_project_roles,
    can_assign_roles,
    get_membership,
    require_member,
)

logger = logging.getLogger(__name__)

ALL_PROJECT_ROLES = [ProjectRole.STUDENT, ProjectRole.PROFESSOR, ProjectRole.TEAM_LEADER]


def _normalize_email(email: Optional[str]) -> str:
    email = (email or "").strip()
    if not email:
        raise ValidationError("Email required")
    return email


def _sorted_roles(roles) -> list[ProjectRole]:
    return [r for r in ALL_PROJECT_ROLES if r in roles]


def find_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(func.lower(User.email) == email.lower()).first()


def _get_project(db: Session, project_id: str) -> Project:
    project = db.query(Project).filter(Project.project_id == project_id).first()
    if not project:
        raise NotFound("Project not found")
    return project


def _get_invite(db: Session, token: str) -> ProjectInvite:
    invite = db.query(ProjectInvite).filter(ProjectInvite.token == token).first()
    if not invite:
        raise NotFound("Invite not found.")
    return invite


def _check_usable(invite: ProjectInvite) -> None:
    if invite.used_at is not None:
        raise AlreadyUsed()
    if as_utc(invite.expires_at) < utcnow():
        raise Expired()


def accept_link(invite: ProjectInvite) -> str:
    return f"{settings.APP_URL.rstrip('/')}/invite/{invite.token}"


def lookup_invitee(db: Session, project_id: str, email: str) -> dict[str, Any]:
    """Which project roles can be assigned to ``email``."""
    _get_project(db, project_id)
    email = _normalize_email(email)
    invitee = find_user_by_email(db, email)
    if not invitee:
        return {
            "name": None,
            "global_role": None,
            "allowed_project_roles": list(ALL_PROJECT_ROLES),
            "is_new_account": True,
        }
    return {
        "name": invitee.name,
        "global_role": invitee.global_role,
        "allowed_project_roles": _sorted_roles(allowed_project_roles(invitee.global_role)),
        "is_new_account": False,
    }


def find_live_invite(db: Session, project_id: str, email: str) -> Optional[ProjectInvite]:
    return (
        db.query(ProjectInvite)
        .filter(
            ProjectInvite.project_id == project_id,
            func.lower(ProjectInvite.email) == email.lower(),
            ProjectInvite.used_at.is_(None),
            ProjectInvite.expires_at > utcnow(),
        )
        .order_by(ProjectInvite.created_at.desc())
        .first()
    )


def create_or_update_membership(
    db: Session,
    project_id: str,
    email: str,
    requested_role: ProjectRole,
    inviter: User,
) -> dict[str, Any]:
    """Add an existing account to the project (or change its role), or send a
    pending invite to an email without an account."""
    project = _get_project(db, project_id)
    inviter_member = require_member(db, project_id, inviter.user_id)
    email = _normalize_email(email)

    invitee = find_user_by_email(db, email)
    if invitee:
        if requested_role not in allowed_project_roles(invitee.global_role):
            raise RoleNotAllowed(
                f'A {invitee.global_role.value.lower()} cannot be assigned the "{requested_role.value}" project role.'
            )

        existing = get_membership(db, project_id, invitee.user_id)
        if existing:
            if existing.role == requested_role:
                raise AlreadyMember()
            if not can_assign_roles(inviter_member.role):
                raise Forbidden("Only team leaders and professors can change member roles.")
            old_role = existing.role
            existing.role = requested_role
            db.commit()
            logger.info(
                "Changed role of %s in project %s from %s to %s",
                invitee.user_id, project_id, old_role.value, requested_role.value,
            )
            return {"name": invitee.name, "updated": True}

        db.add(ProjectMember(project_id=project_id, user_id=invitee.user_id, role=requested_role))
        activity_service.record(
            db, inviter.user_id, project_id, ActivityAction.MEMBER_INVITED, {"invitee_email": email}
        )
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise AlreadyMember("Already a member of this project.")
        logger.info("Added %s to project %s as %s", invitee.user_id, project_id, requested_role.value)
        return {"name": invitee.name, "added": True}

    invite = find_live_invite(db, project_id, email)
    if invite:
        logger.info("Reusing pending invite %s for %s", invite.invite_id, email)
    else:
        invite = ProjectInvite(
            project_id=project_id,
            email=email,
            role=requested_role,
            token=secrets.token_urlsafe(32),
            invited_by_id=inviter.user_id,
            expires_at=utcnow() + timedelta(days=settings.INVITE_TTL_DAYS),
        )
        db.add(invite)
        db.commit()
        db.refresh(invite)
        logger.info("Created invite %s for %s to project %s", invite.invite_id, email, project_id)

    link = accept_link(invite)
    sent = email_service.send_invite_email(
        to=email,
        project_name=project.name,
        inviter_name=inviter.display_name,
        role_label=ROLE_LABELS.get(invite.role, invite.role.value),
        accept_url=link,
    )
    return {"invited": True, "email": email, "link": link, "email_sent": sent}


def preview_invite(db: Session, token: str) -> dict[str, Any]:
    """Public summary of an invite, shown before the invitee signs in."""
    invite = _get_invite(db, token)
    _check_usable(invite)
    return {
        "project_id": invite.project.project_id,
        "project_name": invite.project.name,
        "course_code": invite.project.course_code,
        "role": invite.role,
        "inviter_name": invite.invited_by.display_name,
        "email": invite.email,
        "expires_at": as_utc(invite.expires_at),
    }


def _consume(db: Session, invite: ProjectInvite, user_id: str) -> None:
    """Mark the invite used and make ``user_id`` a member, within the caller's transaction."""
    claimed = (
        db.query(ProjectInvite)
        .filter(ProjectInvite.invite_id == invite.invite_id, ProjectInvite.used_at.is_(None))
        .update({ProjectInvite.used_at: utcnow()}, synchronize_session=False)
    )
    if not claimed:
        raise AlreadyUsed()

    if get_membership(db, invite.project_id, user_id):
        return
    try:
        with db.begin_nested():
            db.add(ProjectMember(project_id=invite.project_id, user_id=user_id, role=invite.role))
    except IntegrityError:
        logger.info("User %s joined project %s concurrently", user_id, invite.project_id)
        return
    activity_service.record(
        db, user_id, invite.project_id, ActivityAction.MEMBER_INVITED, {"invitee_email": invite.email}
    )


def accept_invite(db: Session, token: str, caller: User) -> str:
    """Accept an invite on behalf of ``caller``; returns the project id."""
    invite = _get_invite(db, token)
    _check_usable(invite)
    if caller.email.lower() != invite.email.lower():
        logger.warning("User %s tried to accept invite addressed to %s", caller.user_id, invite.email)
        raise EmailMismatch(f"This invite was sent to {invite.email}. Please sign in with that email.")

    try:
        _consume(db, invite, caller.user_id)
    except AlreadyUsed:
        db.rollback()
        raise
    db.commit()
    logger.info("User %s accepted invite %s to project %s", caller.user_id, invite.invite_id, invite.project_id)
    return invite.project_id


def consume_pending_invites_on_signup(db: Session, user: User) -> int:
    """Turn every live invite for the new account's email into a membership.

    Runs inside the signup transaction; the caller commits. Returns the
    number of invites consumed.
    """
    invites = (
        db.query(ProjectInvite)
        .filter(
            func.lower(ProjectInvite.email) == user.email.lower(),
            ProjectInvite.used_at.is_(None),
            ProjectInvite.expires_at > utcnow(),
        )
        .order_by(ProjectInvite.created_at)
        .all()
    )
    consumed = 0
    for invite in invites:
        try:
            _consume(db, invite, user.user_id)
        except AlreadyUsed:
            continue
        consumed += 1
    if consumed:
        logger.info("Signup of %s consumed %d pending invite(s)", user.user_id, consumed)
    return consumed
