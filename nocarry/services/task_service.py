"""Task board state machine.

Statuses cycle TODO -> IN_PROGRESS -> DONE -> TODO on the board, but an
update may jump straight to any status as long as the caller is allowed to
move the task. Entering DONE stamps ``completed_at``; leaving it clears it.
Every status change is written to the activity log in the same commit.
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Iterable, Optional

from sqlalchemy.orm import Session

from nocarry.database import as_utc, utcnow
from nocarry.errors import Forbidden, NotFound, ValidationError
from nocarry.models.activity_log import ActivityAction
from nocarry.models.task import Task, TaskStatus
from nocarry.services import activity_service
from nocarry.services.permissions import (
    can_change_task_status,
    can_edit_task_details,
    get_membership,
    require_member,
)

logger = logging.getLogger(__name__)

NEXT_STATUS = {
    TaskStatus.TODO: TaskStatus.IN_PROGRESS,
    TaskStatus.IN_PROGRESS: TaskStatus.DONE,
    TaskStatus.DONE: TaskStatus.TODO,
}

HISTORY_AFTER = timedelta(hours=24)

DETAIL_FIELDS = ("title", "description", "assignee_id", "due_date")


def next_status(status: TaskStatus) -> TaskStatus:
    return NEXT_STATUS[status]


def _parse_status(value: Any) -> TaskStatus:
    try:
        return TaskStatus(value)
    except ValueError:
        raise ValidationError("Invalid status")


def _check_assignee(db: Session, project_id: str, assignee_id: Optional[str]) -> None:
    if assignee_id and not get_membership(db, project_id, assignee_id):
        raise ValidationError("Assignee must be a member of this project.")


def get_task(db: Session, project_id: str, task_id: str) -> Task:
    task = db.query(Task).filter(Task.task_id == task_id).first()
    if not task or task.project_id != project_id:
        raise NotFound("Task not found")
    return task


def set_status(task: Task, status: TaskStatus, now: Optional[datetime] = None) -> None:
    """Apply a status and keep ``completed_at`` consistent with it."""
    task.status = status
    task.completed_at = (now or utcnow()) if status == TaskStatus.DONE else None


def create_task(
    db: Session,
    project_id: str,
    actor_id: str,
    title: str,
    description: Optional[str] = None,
    assignee_id: Optional[str] = None,
    due_date: Optional[datetime] = None,
) -> Task:
    require_member(db, project_id, actor_id)
    title = (title or "").strip()
    if not title:
        raise ValidationError("Title required")
    assignee_id = assignee_id or None
    _check_assignee(db, project_id, assignee_id)

    task = Task(
        project_id=project_id,
        title=title,
        description=description,
        assignee_id=assignee_id,
        due_date=due_date,
        created_by_id=actor_id,
        status=TaskStatus.TODO,
    )
    db.add(task)
    db.flush()
    activity_service.record(
        db, actor_id, project_id, ActivityAction.TASK_CREATED, {"task_title": title}, task_id=task.task_id
    )
    db.commit()
    db.refresh(task)
    logger.info("Created task '%s' (%s) in project %s", title, task.task_id, project_id)
    return task


def update_task(
    db: Session,
    project_id: str,
    task_id: str,
    actor_id: str,
    updates: dict[str, Any],
) -> Task:
    """Apply a partial update.

    ``updates`` only contains the fields the client sent: a missing key leaves
    the field alone, ``None`` clears it, anything else sets it.
    """
    task = get_task(db, project_id, task_id)
    member = require_member(db, project_id, actor_id)
    is_assignee = task.assignee_id is not None and task.assignee_id == actor_id

    if "status" in updates and not can_change_task_status(is_assignee, task.assignee_id is not None):
        raise Forbidden("Only the assigned member can update this task's status.")

    if any(f in updates for f in DETAIL_FIELDS) and not can_edit_task_details(is_assignee, member.role):
        raise Forbidden("Only the assigned member or team leaders can edit this task.")

    new_status = None
    if "status" in updates:
        new_status = _parse_status(updates["status"])
        set_status(task, new_status)

    if "title" in updates:
        title = (updates["title"] or "").strip()
        if not title:
            raise ValidationError("Title cannot be empty")
        task.title = title
    if "description" in updates:
        task.description = updates["description"]
    if "assignee_id" in updates:
        assignee_id = updates["assignee_id"] or None
        _check_assignee(db, project_id, assignee_id)
        task.assignee_id = assignee_id
    if "due_date" in updates:
        task.due_date = updates["due_date"]

    if new_status is not None:
        activity_service.record(
            db,
            actor_id,
            project_id,
            ActivityAction.TASK_STATUS_UPDATED,
            {"new_status": new_status.value, "task_title": task.title},
            task_id=task.task_id,
        )
    db.commit()
    db.refresh(task)
    logger.info("Updated task %s fields=%s", task_id, sorted(updates))
    return task


def is_history(task: Task, now: Optional[datetime] = None) -> bool:
    """DONE tasks completed more than 24 hours ago leave the live board."""
    if task.status != TaskStatus.DONE or task.completed_at is None:
        return False
    return (now or utcnow()) - as_utc(task.completed_at) > HISTORY_AFTER


def partition_board(tasks: Iterable[Task], now: Optional[datetime] = None) -> dict[str, list[Task]]:
    now = now or utcnow()
    board: dict[str, list[Task]] = {"todo": [], "in_progress": [], "done": [], "history": []}
    for task in tasks:
        if task.status == TaskStatus.TODO:
            board["todo"].append(task)
        elif task.status == TaskStatus.IN_PROGRESS:
            board["in_progress"].append(task)
        elif is_history(task, now):
            board["history"].append(task)
        else:
            board["done"].append(task)
    board["history"].sort(key=lambda t: as_utc(t.completed_at), reverse=True)
    return board
