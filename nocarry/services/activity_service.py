"""Activity recorder and feeds.

``record`` only adds the row to the session; the caller commits it together
with the change being logged.
"""
import logging
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from nocarry.models.activity_log import ActivityAction, ActivityLog
from nocarry.models.project import ProjectMember

logger = logging.getLogger(__name__)

PROJECT_FEED_LIMIT = 30
USER_FEED_LIMIT = 20

ACTION_LABELS = {
    ActivityAction.PROJECT_CREATED: "created project",
    ActivityAction.TASK_CREATED: "created task",
    ActivityAction.TASK_STATUS_UPDATED: "updated task status",
    ActivityAction.MEMBER_INVITED: "invited a member",
    ActivityAction.FILE_UPLOADED: "uploaded a file",
}


def record(
    db: Session,
    user_id: str,
    project_id: str,
    action: ActivityAction,
    metadata: Optional[dict[str, Any]] = None,
    task_id: Optional[str] = None,
) -> ActivityLog:
    entry = ActivityLog(
        user_id=user_id,
        project_id=project_id,
        task_id=task_id,
        action=action,
        meta=metadata or {},
    )
    db.add(entry)
    logger.debug("Recorded %s by %s in project %s", action.value, user_id, project_id)
    return entry


def action_label(action: ActivityAction) -> str:
    return ACTION_LABELS.get(action) or action.value.lower().replace("_", " ")


def _format(log: ActivityLog) -> dict[str, Any]:
    return {
        "log_id": log.log_id,
        "actor_id": log.user_id,
        "actor_name": log.user.display_name,
        "actor_avatar": log.user.avatar_url,
        "action": log.action.value,
        "label": action_label(log.action),
        "project_id": log.project_id,
        "project_name": log.project.name,
        "task_id": log.task_id,
        "metadata": log.meta or {},
        "created_at": log.created_at,
    }


def project_feed(db: Session, project_id: str, limit: int = PROJECT_FEED_LIMIT) -> list[dict[str, Any]]:
    logs = (
        db.query(ActivityLog)
        .options(joinedload(ActivityLog.user), joinedload(ActivityLog.project))
        .filter(ActivityLog.project_id == project_id)
        .order_by(ActivityLog.created_at.desc())
        .limit(limit)
        .all()
    )
    return [_format(log) for log in logs]


def user_feed(db: Session, user_id: str, limit: int = USER_FEED_LIMIT) -> list[dict[str, Any]]:
    """Recent activity across every project the user belongs to."""
    project_ids = select(ProjectMember.project_id).where(ProjectMember.user_id == user_id)
    logs = (
        db.query(ActivityLog)
        .options(joinedload(ActivityLog.user), joinedload(ActivityLog.project))
        .filter(ActivityLog.project_id.in_(project_ids))
        .order_by(ActivityLog.created_at.desc())
        .limit(limit)
        .all()
    )
    return [_format(log) for log in logs]
