"""Database models."""
from skillpath.models.user import User
from skillpath.models.skill import Skill, UserSkill
from skillpath.models.course import Course
from skillpath.models.quiz import Quiz, QuizResponse
from skillpath.models.progress import Progress
from skillpath.models.learning_session import LearningSession
from skillpath.models.team import Team, TeamMember
from skillpath.models.ai_interaction import AIInteraction

__all__ = [
    "User",
    "Skill",
    "UserSkill",
    "Course",
    "Quiz",
    "QuizResponse",
    "Progress",
    "LearningSession",
    "Team",
    "TeamMember",
    "AIInteraction",
]
