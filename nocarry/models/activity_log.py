"""ActivityLog ORM model: append-only audit trail read by the contribution scorer."""
import enum
import uuid
from sqlalchemy import Column, String, DateTime, JSON, ForeignKey, Enum as SAEnum
from sqlalchemy.orm import relationship
from nocarry.database import Base, utcnow


class ActivityAction(str, enum.Enum):
    PROJECT_CREATED = "PROJECT_CREATED"
    TASK_CREATED = "TASK_CREATED"
    TASK_STATUS_UPDATED = "TASK_STATUS_UPDATED"
    MEMBER_INVITED = "MEMBER_INVITED"
    FILE_UPLOADED = "FILE_UPLOADED"


class ActivityLog(Base):
    __tablename__ = "activity_logs"

    log_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    project_id = Column(String(36), ForeignKey("projects.project_id", ondelete="CASCADE"), nullable=False, index=True)
    task_id = Column(String(36), ForeignKey("tasks.task_id", ondelete="SET NULL"), nullable=True)
    action = Column(SAEnum(ActivityAction, native_enum=False, length=30), nullable=False)
    meta = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    user = relationship("User")
    project = relationship("Project")
