"""Quiz models."""
import uuid
from sqlalchemy import Column, String, DateTime, Text, Integer, ForeignKey, JSON, Uuid
from sqlalchemy.orm import relationship
from skillpath.db.base import Base, utcnow


class Quiz(Base):
    """A generated set of questions for a course module. Immutable once stored."""

    __tablename__ = "quizzes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    course_id = Column(Uuid, ForeignKey("courses.id", ondelete="SET NULL"))
    module_id = Column(String(100), nullable=False)
    module_content = Column(Text)  # first 1000 characters only
    difficulty_level = Column(String(20), nullable=False)  # beginner / intermediate / advanced
    questions = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    # Relationships
    user = relationship("User", back_populates="quizzes")
    responses = relationship("QuizResponse", back_populates="quiz", cascade="all, delete-orphan")


class QuizResponse(Base):
    """One graded attempt. Retakes create new rows."""

    __tablename__ = "quiz_responses"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    quiz_id = Column(Uuid, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    answers = Column(JSON, nullable=False)  # question id -> answer text
    grade_percentage = Column(Integer, nullable=False)
    feedback = Column(JSON, nullable=False)
    completed_at = Column(DateTime, default=utcnow)

    # Relationships
    quiz = relationship("Quiz", back_populates="responses")
