"""Task board routes: delegates to task_service for the state machine rules."""
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from nocarry.auth import get_current_user
from nocarry.database import get_db
from nocarry.models.task import Task
from nocarry.models.user import User
from nocarry.schemas.task import BoardOut, TaskCreate, TaskOut, TaskUpdate
from nocarry.services import task_service
from nocarry.services.permissions import require_member

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/{project_id}/tasks", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
def create_task(
    project_id: str,
    payload: TaskCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return task_service.create_task(
        db=db,
        project_id=project_id,
        actor_id=user.user_id,
        title=payload.title,
        description=payload.description,
        assignee_id=payload.assignee_id,
        due_date=payload.due_date,
    )


@router.get("/{project_id}/board", response_model=BoardOut)
def get_board(project_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Live board columns plus the history of tasks finished over a day ago."""
    require_member(db, project_id, user.user_id)
    tasks = db.query(Task).filter(Task.project_id == project_id).order_by(Task.created_at).all()
    return task_service.partition_board(tasks)


@router.patch("/{project_id}/tasks/{task_id}", response_model=TaskOut)
def update_task(
    project_id: str,
    task_id: str,
    payload: TaskUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Change a task's status and/or details (partial update)."""
    return task_service.update_task(
        db=db,
        project_id=project_id,
        task_id=task_id,
        actor_id=user.user_id,
        updates=payload.model_dump(exclude_unset=True),
    )
