"""Project, membership, activity and contribution routes."""
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session, selectinload

from nocarry.auth import get_current_user
from nocarry.database import get_db
from nocarry.errors import Forbidden, NotFound
from nocarry.models.activity_log import ActivityAction
from nocarry.models.project import Project, ProjectMember, ProjectRole
from nocarry.models.user import GlobalRole, User
from nocarry.schemas.activity import ActivityOut
from nocarry.schemas.contribution import ContributionOut
from nocarry.schemas.project import MemberOut, ProjectCreate, ProjectDetailOut, ProjectOut
from nocarry.services import activity_service, contribution_service
from nocarry.services.permissions import can_remove_member, require_member

logger = logging.getLogger(__name__)
router = APIRouter()


def _get_project(db: Session, project_id: str) -> Project:
    project = (
        db.query(Project)
        .options(selectinload(Project.members).selectinload(ProjectMember.user), selectinload(Project.tasks))
        .filter(Project.project_id == project_id)
        .first()
    )
    if not project:
        raise NotFound("Project not found")
    return project


@router.post("/", response_model=ProjectDetailOut, status_code=status.HTTP_201_CREATED)
def create_project(
    payload: ProjectCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a project. The creator owns it and leads it (professors join as professor)."""
    project = Project(
        name=payload.name.strip(),
        description=payload.description,
        course_code=(payload.course_code or "").strip() or None,
        owner_id=user.user_id,
    )
    db.add(project)
    db.flush()

    role = ProjectRole.PROFESSOR if user.global_role == GlobalRole.PROFESSOR else ProjectRole.TEAM_LEADER
    db.add(ProjectMember(project_id=project.project_id, user_id=user.user_id, role=role))
    activity_service.record(
        db, user.user_id, project.project_id, ActivityAction.PROJECT_CREATED, {"project_name": project.name}
    )
    db.commit()
    logger.info("Created project '%s' (%s) by user %s", project.name, project.project_id, user.user_id)
    return _get_project(db, project.project_id)


@router.get("/", response_model=list[ProjectOut])
def list_projects(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Projects the caller belongs to, newest first."""
    return (
        db.query(Project)
        .join(ProjectMember)
        .filter(ProjectMember.user_id == user.user_id)
        .order_by(Project.created_at.desc())
        .all()
    )


@router.get("/{project_id}", response_model=ProjectDetailOut)
def get_project(project_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Fetch a project with its members and tasks."""
    project = _get_project(db, project_id)
    require_member(db, project_id, user.user_id)
    return project


@router.get("/{project_id}/members", response_model=list[MemberOut])
def list_members(project_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    project = _get_project(db, project_id)
    require_member(db, project_id, user.user_id)
    return project.members


@router.delete("/{project_id}/members/{member_id}")
def remove_member(
    project_id: str,
    member_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Quit a project (own membership) or remove someone else from it."""
    caller = require_member(db, project_id, user.user_id)
    target = db.query(ProjectMember).filter(ProjectMember.member_id == member_id).first()
    if not target or target.project_id != project_id:
        raise NotFound("Member not found")

    is_self = target.user_id == user.user_id
    if not can_remove_member(caller.role, target.role, is_self):
        if target.role == ProjectRole.TEAM_LEADER:
            raise Forbidden("Cannot remove the team leader.")
        raise Forbidden("Only team leaders and professors can remove members.")

    db.delete(target)
    db.commit()
    logger.info(
        "%s user %s from project %s", "Quit:" if is_self else "Removed", target.user_id, project_id
    )
    return {"ok": True}


@router.get("/{project_id}/activity", response_model=list[ActivityOut])
def project_activity(project_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    require_member(db, project_id, user.user_id)
    return activity_service.project_feed(db, project_id)


@router.get("/{project_id}/contributions", response_model=list[ContributionOut])
def project_contributions(
    project_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Per-member contribution ranking, recomputed from the activity log."""
    require_member(db, project_id, user.user_id)
    return contribution_service.project_contributions(db, project_id)
