"""Progress persistence and team-scoped rollups."""
import logging
import uuid
from typing import Dict, List, Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from skillpath.core.errors import Forbidden, NotFound, ValidationFailed
from skillpath.db.base import utcnow
from skillpath.db.upsert import upsert
from skillpath.models import Course, Progress, Skill, Team, TeamMember, UserSkill
from skillpath.models.progress import PROGRESS_STATUSES
from skillpath.services.cache import ReadCache
from skillpath.services.progress_aggregator import summarize_skill_categories, summarize_team

logger = logging.getLogger(__name__)

TEAM_PROGRESS = "team-progress"


def _keep_first_completion(excluded):
    # a row that stays completed keeps the time it was first completed
    return {
        "completed_at": case(
            (excluded.status == "completed", func.coalesce(Progress.completed_at, excluded.completed_at)),
            else_=None,
        )
    }


def upsert_progress(
    db: Session,
    user_id,
    module_id: str,
    module_type: str,
    completion_percentage: int,
    status: str,
    cache: Optional[ReadCache] = None,
) -> Progress:
    """Create or update the (user, module) progress row in one statement."""
    if status not in PROGRESS_STATUSES:
        raise ValidationFailed(f"Invalid status: {status}")
    if not 0 <= completion_percentage <= 100:
        raise ValidationFailed("completion_percentage must be between 0 and 100")

    now = utcnow()
    upsert(
        db,
        Progress,
        values={
            "user_id": user_id,
            "module_id": module_id,
            "module_type": module_type,
            "completion_percentage": completion_percentage,
            "status": status,
            "completed_at": now if status == "completed" else None,
            "updated_at": now,
        },
        conflict_columns=["user_id", "module_id"],
        update_columns=["module_type", "completion_percentage", "status", "updated_at"],
        merge=_keep_first_completion,
    )
    db.commit()

    if cache is not None:
        cache.invalidate(TEAM_PROGRESS)

    return db.query(Progress).filter(Progress.user_id == user_id, Progress.module_id == module_id).one()


def user_progress(db: Session, user_id) -> List[Progress]:
    return db.query(Progress).filter(Progress.user_id == user_id).order_by(Progress.updated_at.desc()).all()


def get_managed_team(db: Session, team_id, manager_id) -> Team:
    team = db.query(Team).filter(Team.id == team_id).first()
    if not team:
        raise NotFound("Team not found")
    if team.manager_id != manager_id:
        raise Forbidden("Only the team's manager can view this team")
    return team


def team_member_ids(db: Session, team_id) -> List:
    rows = db.query(TeamMember.user_id).filter(TeamMember.team_id == team_id).order_by(TeamMember.joined_at).all()
    return [row.user_id for row in rows]


def course_difficulty_map(db: Session, module_ids) -> Dict[str, str]:
    """Map module ids that name a course to that course's difficulty level."""
    course_ids = {}
    for module_id in module_ids:
        try:
            course_ids[str(module_id)] = uuid.UUID(str(module_id))
        except ValueError:
            continue  # not a course module
    if not course_ids:
        return {}
    courses = db.query(Course.id, Course.difficulty_level).filter(Course.id.in_(set(course_ids.values()))).all()
    levels = {c.id: c.difficulty_level for c in courses}
    return {module_id: levels[cid] for module_id, cid in course_ids.items() if cid in levels}


def compute_team_progress(db: Session, team_id) -> Dict:
    member_ids = team_member_ids(db, team_id)
    if not member_ids:
        return {"progress": summarize_team([], []), "skill_categories": []}

    rows = db.query(Progress).filter(Progress.user_id.in_(member_ids)).all()
    difficulty = course_difficulty_map(db, [r.module_id for r in rows])
    levels = db.query(Skill.category, UserSkill.current_level).join(
        Skill, Skill.id == UserSkill.skill_id
    ).filter(UserSkill.user_id.in_(member_ids)).all()

    return {
        "progress": summarize_team(rows, member_ids, course_difficulty=difficulty),
        "skill_categories": summarize_skill_categories((row.category, row.current_level) for row in levels),
    }


def team_progress(db: Session, team_id, cache: Optional[ReadCache] = None) -> Dict:
    """Team rollup, served from ``cache`` when one is given."""
    if cache is None:
        return compute_team_progress(db, team_id)
    return cache.get_or_compute((TEAM_PROGRESS, str(team_id)), lambda: compute_team_progress(db, team_id))
