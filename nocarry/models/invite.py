"""ProjectInvite ORM model: a pending invitation for an email without an account."""
import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, Enum as SAEnum
from sqlalchemy.orm import relationship
from nocarry.database import Base, utcnow
from nocarry.models.project import ProjectRole


class ProjectInvite(Base):
    __tablename__ = "project_invites"

    invite_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    project_id = Column(String(36), ForeignKey("projects.project_id", ondelete="CASCADE"), nullable=False)
    email = Column(String(320), nullable=False, index=True)
    role = Column(SAEnum(ProjectRole, native_enum=False, length=30), nullable=False, default=ProjectRole.STUDENT)
    token = Column(String(64), nullable=False, unique=True)
    invited_by_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    project = relationship("Project")
    invited_by = relationship("User")
