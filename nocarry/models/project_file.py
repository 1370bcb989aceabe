"""ProjectFile ORM model: metadata for an object kept in external storage."""
import uuid
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from nocarry.database import Base, utcnow


class ProjectFile(Base):
    __tablename__ = "project_files"

    file_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    project_id = Column(String(36), ForeignKey("projects.project_id", ondelete="CASCADE"), nullable=False)
    uploaded_by_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    name = Column(String(255), nullable=False)
    url = Column(String(1000), nullable=False)
    size = Column(Integer, nullable=True)
    mime_type = Column(String(150), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    uploaded_by = relationship("User")
