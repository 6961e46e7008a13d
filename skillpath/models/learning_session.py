"""LearningSession model."""
import uuid
from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, Uuid
from skillpath.db.base import Base, utcnow

SESSION_TYPES = ("course", "assessment", "practice")


class LearningSession(Base):
    """Timed study session. Open while ended_at is NULL."""

    __tablename__ = "learning_sessions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    course_id = Column(Uuid, ForeignKey("courses.id", ondelete="SET NULL"))
    session_type = Column(String(20), nullable=False)
    started_at = Column(DateTime, nullable=False, default=utcnow)
    ended_at = Column(DateTime)
    duration_minutes = Column(Integer)
    created_at = Column(DateTime, default=utcnow)

    @property
    def is_open(self) -> bool:
        return self.ended_at is None
