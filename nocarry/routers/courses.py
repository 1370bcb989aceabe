"""Course overview for professors."""
from collections import defaultdict

from fastapi import APIRouter, Depends
from sqlalchemy import or_, select
from sqlalchemy.orm import Session, selectinload

from nocarry.auth import get_current_user
from nocarry.database import get_db
from nocarry.errors import Forbidden
from nocarry.models.project import Project, ProjectMember, ProjectRole
from nocarry.models.user import GlobalRole, User
from nocarry.schemas.project import CourseOut

router = APIRouter()

UNCATEGORIZED = "Uncategorized"


@router.get("", response_model=list[CourseOut])
def list_courses(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Projects the professor owns or monitors, grouped by course code."""
    if user.global_role != GlobalRole.PROFESSOR:
        raise Forbidden("Only professors can view courses.")

    monitored = (
        select(ProjectMember.project_id)
        .where(ProjectMember.user_id == user.user_id, ProjectMember.role == ProjectRole.PROFESSOR)
    )
    projects = (
        db.query(Project)
        .options(selectinload(Project.members).selectinload(ProjectMember.user), selectinload(Project.tasks))
        .filter(or_(Project.owner_id == user.user_id, Project.project_id.in_(monitored)))
        .order_by(Project.name)
        .all()
    )

    grouped: dict[str, list[Project]] = defaultdict(list)
    for project in projects:
        grouped[project.course_code or UNCATEGORIZED].append(project)
    return [{"course_code": code, "projects": grouped[code]} for code in sorted(grouped)]
