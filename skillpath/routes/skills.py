"""Skill catalogue and assessment routes."""
import uuid
from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field

from skillpath.db.sessions import get_db
from skillpath.models import Skill, User, UserSkill
from skillpath.core.responses import ApiResponse, ok
from skillpath.core.security import get_current_user
from skillpath.services.cache import ReadCache, get_cache
from skillpath.services.scoring import AssessmentAnswer
from skillpath.services.skill_assessment import list_user_skills, record_assessment


router = APIRouter(prefix="/skills", tags=["Skills"])


class SkillOut(BaseModel):
    id: str
    name: str
    category: str
    industry: Optional[str]
    difficulty_level: int


class UserSkillOut(BaseModel):
    id: str
    skill_id: str
    current_level: int
    target_level: int
    status: str
    assessed_at: Optional[str]


class AnswerIn(BaseModel):
    correct: bool = False
    partial_credit: bool = False
    selected_index: Optional[int] = Field(default=None, ge=0)
    correct_index: Optional[int] = Field(default=None, ge=0)


class AssessSkillRequest(BaseModel):
    skill_id: uuid.UUID
    answers: List[AnswerIn] = Field(min_length=1)


class AssessSkillResponse(BaseModel):
    skill_level: int
    total_score: int
    max_score: int
    user_skill: UserSkillOut
    message: str


def _user_skill_out(row: UserSkill) -> UserSkillOut:
    return UserSkillOut(
        id=str(row.id),
        skill_id=str(row.skill_id),
        current_level=row.current_level,
        target_level=row.target_level,
        status=row.status,
        assessed_at=row.assessed_at.isoformat() if row.assessed_at else None,
    )


@router.get("", response_model=ApiResponse[List[SkillOut]])
def list_skills(
    industry: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    query = db.query(Skill)
    if industry:
        query = query.filter(Skill.industry == industry)
    return ok([
        SkillOut(
            id=str(s.id),
            name=s.name,
            category=s.category,
            industry=s.industry,
            difficulty_level=s.difficulty_level,
        )
        for s in query.order_by(Skill.category, Skill.name).all()
    ])


@router.get("/mine", response_model=ApiResponse[List[UserSkillOut]])
def my_skills(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return ok([_user_skill_out(row) for row in list_user_skills(db, current_user.id)])


@router.post("/assess", response_model=ApiResponse[AssessSkillResponse])
def assess_skill(
    request: AssessSkillRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: ReadCache = Depends(get_cache)
):
    """
    Score a skill assessment and store the resulting level.

    Each answer earns 10 points when correct and 5 for a near miss.
    Re-assessing a skill updates the existing record.
    """
    outcome = record_assessment(
        db,
        current_user.id,
        request.skill_id,
        [AssessmentAnswer(**a.model_dump()) for a in request.answers],
        cache=cache,
    )
    return ok(AssessSkillResponse(
        skill_level=outcome.level,
        total_score=outcome.score.total_score,
        max_score=outcome.score.max_score,
        user_skill=_user_skill_out(outcome.user_skill),
        message=f"Assessment complete! Your skill level: {outcome.level}%",
    ))
