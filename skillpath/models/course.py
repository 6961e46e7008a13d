"""Course model."""
import uuid
from sqlalchemy import Column, String, DateTime, Text, Uuid
from skillpath.db.base import Base, utcnow

DIFFICULTY_LEVELS = ("beginner", "intermediate", "advanced")


class Course(Base):
    """Course metadata. Progress rollups join on it for difficulty breakdowns."""

    __tablename__ = "courses"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(300), nullable=False)
    description = Column(Text)
    category = Column(String(100))
    difficulty_level = Column(String(20), nullable=False, default="beginner")
    created_at = Column(DateTime, default=utcnow)
