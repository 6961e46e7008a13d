"""User model."""
import uuid
from sqlalchemy import Column, String, DateTime, Uuid
from sqlalchemy.orm import relationship
from skillpath.db.base import Base, utcnow

ROLE_LEARNER = "learner"
ROLE_MANAGER = "manager"


class User(Base):
    """A learner or a manager. Managers own teams."""

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    full_name = Column(String(100), nullable=False)
    email = Column(String(150), unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(String(20), nullable=False, default=ROLE_LEARNER)
    industry = Column(String(100))
    created_at = Column(DateTime, default=utcnow)

    # Relationships
    skills = relationship("UserSkill", back_populates="user", cascade="all, delete-orphan")
    quizzes = relationship("Quiz", back_populates="user", cascade="all, delete-orphan")

    @property
    def is_manager(self) -> bool:
        return self.role == ROLE_MANAGER
