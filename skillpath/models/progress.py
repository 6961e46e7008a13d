"""Progress model."""
import uuid
from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, Uuid, UniqueConstraint
from skillpath.db.base import Base, utcnow

PROGRESS_STATUSES = ("not_started", "in_progress", "completed")


class Progress(Base):
    """Per-module completion record, one row per (user, module)."""

    __tablename__ = "progress"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    module_id = Column(String(100), nullable=False)
    module_type = Column(String(50), nullable=False)
    completion_percentage = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="not_started")
    completed_at = Column(DateTime)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "module_id", name="uq_progress_user_module"),
    )
