"""User ORM model."""
import enum
import uuid
from sqlalchemy import Column, String, Text, DateTime, Enum as SAEnum
from sqlalchemy.sql import func
from nocarry.database import Base


class GlobalRole(str, enum.Enum):
    """Account-wide role, fixed at signup. Not the same thing as a ProjectRole."""

    STUDENT = "STUDENT"
    PROFESSOR = "PROFESSOR"


class User(Base):
    __tablename__ = "users"

    # Same id as the identity provider's subject
    user_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(320), nullable=False, unique=True)
    name = Column(String(150), nullable=False)
    preferred_name = Column(String(150), nullable=True)
    global_role = Column(SAEnum(GlobalRole, native_enum=False, length=30), nullable=False, default=GlobalRole.STUDENT)
    bio = Column(Text, nullable=True)
    school = Column(String(150), nullable=True)
    major = Column(String(150), nullable=True)
    github_url = Column(String(500), nullable=True)
    linkedin_url = Column(String(500), nullable=True)
    avatar_url = Column(String(500), nullable=True)
    status = Column(String(150), nullable=True)
    status_expires_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def display_name(self) -> str:
        return self.preferred_name or self.name
