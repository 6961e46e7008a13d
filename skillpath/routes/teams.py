"""Team management and team progress routes (managers only)."""
import uuid
from dataclasses import asdict
from typing import Dict, List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field

from skillpath.db.sessions import get_db
from skillpath.models import Team, TeamMember, User
from skillpath.core.responses import ApiResponse, ok
from skillpath.core.security import require_manager
from skillpath.services.cache import ReadCache, get_cache
from skillpath.services.progress_service import TEAM_PROGRESS, get_managed_team, team_progress


router = APIRouter(prefix="/teams", tags=["Teams"])


class CreateTeamRequest(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None


class AddMemberRequest(BaseModel):
    user_id: uuid.UUID
    role: str = "member"


class TeamOut(BaseModel):
    id: str
    name: str
    description: Optional[str]
    manager_id: str
    created_at: str


class MemberOut(BaseModel):
    id: str
    team_id: str
    user_id: str
    role: str


class MemberSummaryOut(BaseModel):
    user_id: str
    average_completion: float
    completed_count: int
    total_modules: int


class BreakdownOut(BaseModel):
    total: int
    completed: int
    average_completion: float
    percentage: int


class SkillCategoryOut(BaseModel):
    category: str
    total: int
    average_level: int
    mastered: int
    mastery_rate: int


class TeamProgressOut(BaseModel):
    member_count: int
    average_progress: float
    completed_modules: int
    total_modules: int
    by_module_type: Dict[str, BreakdownOut]
    by_difficulty: Dict[str, BreakdownOut]
    members: List[MemberSummaryOut]
    top_performers: List[MemberSummaryOut]
    skill_categories: List[SkillCategoryOut]


@router.post("", response_model=ApiResponse[TeamOut], status_code=status.HTTP_201_CREATED)
def create_team(
    request: CreateTeamRequest,
    current_user: User = Depends(require_manager),
    db: Session = Depends(get_db)
):
    team = Team(name=request.name, description=request.description, manager_id=current_user.id)
    db.add(team)
    db.commit()
    db.refresh(team)
    return ok(TeamOut(
        id=str(team.id),
        name=team.name,
        description=team.description,
        manager_id=str(team.manager_id),
        created_at=team.created_at.isoformat(),
    ))


@router.post("/{team_id}/members", response_model=ApiResponse[MemberOut], status_code=status.HTTP_201_CREATED)
def add_member(
    team_id: uuid.UUID,
    request: AddMemberRequest,
    current_user: User = Depends(require_manager),
    db: Session = Depends(get_db),
    cache: ReadCache = Depends(get_cache)
):
    team = get_managed_team(db, team_id, current_user.id)

    if not db.query(User).filter(User.id == request.user_id).first():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    existing = db.query(TeamMember).filter(
        TeamMember.team_id == team.id,
        TeamMember.user_id == request.user_id
    ).first()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User is already a team member")

    member = TeamMember(team_id=team.id, user_id=request.user_id, role=request.role)
    db.add(member)
    db.commit()
    db.refresh(member)
    cache.invalidate(TEAM_PROGRESS)

    return ok(MemberOut(
        id=str(member.id),
        team_id=str(member.team_id),
        user_id=str(member.user_id),
        role=member.role,
    ))


@router.get("/{team_id}/progress", response_model=ApiResponse[TeamProgressOut])
def get_team_progress(
    team_id: uuid.UUID,
    current_user: User = Depends(require_manager),
    db: Session = Depends(get_db),
    cache: ReadCache = Depends(get_cache)
):
    """
    Progress rollup for every member of a team.

    Includes averages, breakdowns by module type and course difficulty,
    top performers and skill category mastery.
    """
    team = get_managed_team(db, team_id, current_user.id)
    rollup = team_progress(db, team.id, cache)
    return ok(TeamProgressOut(
        **asdict(rollup["progress"]),
        skill_categories=[asdict(c) for c in rollup["skill_categories"]],
    ))
