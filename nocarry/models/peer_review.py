"""PeerReview ORM model."""
import uuid
from sqlalchemy import (
    Column, String, Integer, Text, DateTime, ForeignKey, UniqueConstraint, CheckConstraint,
)
from sqlalchemy.sql import func
from nocarry.database import Base

RATING_FIELDS = ("quality", "communication", "timeliness", "initiative")


class PeerReview(Base):
    __tablename__ = "peer_reviews"
    __table_args__ = (
        UniqueConstraint("project_id", "reviewer_id", "receiver_id", name="uq_peer_reviews_once"),
        CheckConstraint("reviewer_id <> receiver_id", name="ck_peer_reviews_not_self"),
        *(CheckConstraint(f"{f} BETWEEN 1 AND 5", name=f"ck_peer_reviews_{f}") for f in RATING_FIELDS),
    )

    review_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    project_id = Column(String(36), ForeignKey("projects.project_id", ondelete="CASCADE"), nullable=False)
    reviewer_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    receiver_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    quality = Column(Integer, nullable=False)
    communication = Column(Integer, nullable=False)
    timeliness = Column(Integer, nullable=False)
    initiative = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def average(self) -> float:
        return sum(getattr(self, f) for f in RATING_FIELDS) / len(RATING_FIELDS)
