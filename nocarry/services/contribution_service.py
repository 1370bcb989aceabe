"""Contribution scorer: per-member points derived from the audit trail.

Computed on every request; nothing is cached or stored.

Points per member::

    3 x tasks completed (assigned to them, currently DONE)
  + 1 x tasks in progress (assigned to them, currently IN_PROGRESS)
  + 1 x tasks created (TASK_CREATED log entries)
  + 0.5 x other actions (log entries other than task creation / status changes)
  + 0.5 x mean peer rating received (0 without reviews)

Status-change entries are not counted on their own; their effect already
shows up in the task states. Percentages are relative to the top scorer
(the leader is 100), so they do not sum to 100.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable, Optional

from sqlalchemy.orm import Session, joinedload

from nocarry.models.activity_log import ActivityAction, ActivityLog
from nocarry.models.peer_review import PeerReview
from nocarry.models.project import ProjectMember
from nocarry.models.task import Task, TaskStatus

logger = logging.getLogger(__name__)

WEIGHTS = {
    "tasks_completed": 3.0,
    "tasks_in_progress": 1.0,
    "tasks_created": 1.0,
    "other_actions": 0.5,
}
PEER_RATING_WEIGHT = 0.5

_TASK_ACTIONS = {ActivityAction.TASK_CREATED, ActivityAction.TASK_STATUS_UPDATED}


@dataclass
class Breakdown:
    tasks_completed: int = 0
    tasks_in_progress: int = 0
    tasks_created: int = 0
    other_actions: int = 0


@dataclass
class ContributionScore:
    user_id: str
    name: str
    role: str
    breakdown: Breakdown = field(default_factory=Breakdown)
    average_peer_rating: Optional[float] = None
    reviews_received: int = 0
    points: float = 0.0
    percentage: int = 0


def _points(score: ContributionScore) -> float:
    total = sum(getattr(score.breakdown, key) * weight for key, weight in WEIGHTS.items())
    if score.average_peer_rating is not None:
        total += PEER_RATING_WEIGHT * score.average_peer_rating
    return round(total, 2)


def score_members(
    members: Iterable[ProjectMember],
    tasks: Iterable[Task],
    logs: Iterable[ActivityLog],
    reviews: Iterable[PeerReview],
) -> list[ContributionScore]:
    """Pure aggregation over already-loaded rows, ranked best first."""
    scores = {
        m.user_id: ContributionScore(user_id=m.user_id, name=m.user.display_name, role=m.role.value)
        for m in members
    }

    for task in tasks:
        score = scores.get(task.assignee_id)
        if score is None:
            continue
        if task.status == TaskStatus.DONE:
            score.breakdown.tasks_completed += 1
        elif task.status == TaskStatus.IN_PROGRESS:
            score.breakdown.tasks_in_progress += 1

    for log in logs:
        score = scores.get(log.user_id)
        if score is None:
            continue
        if log.action == ActivityAction.TASK_CREATED:
            score.breakdown.tasks_created += 1
        elif log.action not in _TASK_ACTIONS:
            score.breakdown.other_actions += 1

    ratings: dict[str, list[float]] = defaultdict(list)
    for review in reviews:
        if review.receiver_id in scores:
            ratings[review.receiver_id].append(review.average)
    for user_id, received in ratings.items():
        scores[user_id].reviews_received = len(received)
        scores[user_id].average_peer_rating = round(sum(received) / len(received), 2)

    for score in scores.values():
        score.points = _points(score)

    top = max((s.points for s in scores.values()), default=0)
    for score in scores.values():
        score.percentage = round(score.points / top * 100) if top > 0 else 0

    return sorted(scores.values(), key=lambda s: (-s.points, s.name.lower(), s.user_id))


def project_contributions(db: Session, project_id: str) -> list[ContributionScore]:
    members = (
        db.query(ProjectMember)
        .options(joinedload(ProjectMember.user))
        .filter(ProjectMember.project_id == project_id)
        .all()
    )
    tasks = db.query(Task).filter(Task.project_id == project_id).all()
    logs = db.query(ActivityLog).filter(ActivityLog.project_id == project_id).all()
    reviews = db.query(PeerReview).filter(PeerReview.project_id == project_id).all()

    ranked = score_members(members, tasks, logs, reviews)
    logger.info(
        "Scored %d members of project %s from %d tasks, %d log entries, %d reviews",
        len(ranked), project_id, len(tasks), len(logs), len(reviews),
    )
    return ranked
