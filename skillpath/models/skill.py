"""Skill reference data and per-user skill levels."""
import uuid
from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, Uuid, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from skillpath.db.base import Base, utcnow


class Skill(Base):
    """Static, industry-scoped competency. Never mutated by users."""

    __tablename__ = "skills"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)
    category = Column(String(100), nullable=False)
    industry = Column(String(100))
    difficulty_level = Column(Integer, nullable=False, default=1)  # 1-3

    __table_args__ = (
        CheckConstraint("difficulty_level BETWEEN 1 AND 3", name="ck_skills_difficulty"),
    )


class UserSkill(Base):
    """One row per (user, skill); created on first assessment, never deleted."""

    __tablename__ = "user_skills"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    skill_id = Column(Uuid, ForeignKey("skills.id", ondelete="CASCADE"), nullable=False)
    current_level = Column(Integer, nullable=False, default=0)
    target_level = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="assessed")
    assessed_at = Column(DateTime, default=utcnow)
    created_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "skill_id", name="uq_user_skills_user_skill"),
        CheckConstraint("current_level BETWEEN 0 AND 100", name="ck_user_skills_current"),
        CheckConstraint("target_level BETWEEN 0 AND 100", name="ck_user_skills_target"),
    )

    # Relationships
    user = relationship("User", back_populates="skills")
    skill = relationship("Skill")
