"""Membership & role authorization.

The predicates are pure functions over roles and flags so they can be
reused by routers, services and tests alike. ``require_member`` is the one
helper that touches the database.
"""
from typing import Optional

from sqlalchemy.orm import Session

from nocarry.errors import Forbidden
from nocarry.models.project import ProjectMember, ProjectRole
from nocarry.models.user import GlobalRole

PRIVILEGED_ROLES = frozenset({ProjectRole.TEAM_LEADER, ProjectRole.PROFESSOR})


def allowed_project_roles(global_role: Optional[GlobalRole]) -> frozenset[ProjectRole]:
    """Project roles an account with ``global_role`` may hold."""
    if global_role == GlobalRole.PROFESSOR:
        return frozenset({ProjectRole.PROFESSOR, ProjectRole.TEAM_LEADER})
    return frozenset({ProjectRole.STUDENT, ProjectRole.TEAM_LEADER})


def is_privileged(role: Optional[ProjectRole]) -> bool:
    return role in PRIVILEGED_ROLES


def can_assign_roles(caller_role: Optional[ProjectRole]) -> bool:
    return is_privileged(caller_role)


def can_remove_member(caller_role: Optional[ProjectRole], target_role: ProjectRole, is_self: bool) -> bool:
    """Anyone may quit. Removing someone else needs a privileged role, and team
    leaders can only leave on their own."""
    if is_self:
        return True
    return is_privileged(caller_role) and target_role != ProjectRole.TEAM_LEADER


def can_edit_task_details(is_assignee: bool, caller_role: Optional[ProjectRole]) -> bool:
    return is_assignee or is_privileged(caller_role)


def can_change_task_status(is_assignee: bool, has_assignee: bool) -> bool:
    """Only the assigned member may move an assigned task."""
    return not has_assignee or is_assignee


def get_membership(db: Session, project_id: str, user_id: str) -> Optional[ProjectMember]:
    return (
        db.query(ProjectMember)
        .filter(ProjectMember.project_id == project_id, ProjectMember.user_id == user_id)
        .first()
    )


def require_member(db: Session, project_id: str, user_id: str) -> ProjectMember:
    """Return the caller's membership or raise 403."""
    member = get_membership(db, project_id, user_id)
    if not member:
        raise Forbidden("You are not a member of this project.")
    return member
