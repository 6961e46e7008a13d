"""Skill assessment: turn weighted answers into a persisted skill level."""
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from skillpath.core.errors import NotFound, ValidationFailed
from skillpath.db.base import utcnow
from skillpath.db.upsert import upsert
from skillpath.models import Skill, UserSkill
from skillpath.services.cache import ReadCache
from skillpath.services.progress_service import TEAM_PROGRESS
from skillpath.services.scoring import AssessmentAnswer, AssessmentScore, score_assessment

logger = logging.getLogger(__name__)

TARGET_HEADROOM = 30
STATUS_ASSESSED = "assessed"


def initial_target_level(level: int) -> int:
    return min(level + TARGET_HEADROOM, 100)


@dataclass
class AssessmentOutcome:
    user_skill: UserSkill
    score: AssessmentScore

    @property
    def level(self) -> int:
        return self.score.level


def record_assessment(
    db: Session,
    user_id,
    skill_id,
    answers: Sequence[AssessmentAnswer],
    cache: Optional[ReadCache] = None,
) -> AssessmentOutcome:
    """Score ``answers`` and store the level on the (user, skill) row.

    The row is written with one INSERT ... ON CONFLICT statement: a first
    assessment creates it with ``target_level = min(level + 30, 100)``, a
    re-assessment only updates ``current_level``, ``status`` and
    ``assessed_at``. Database errors propagate to the caller. Team
    rollups held in ``cache`` are dropped since they include skill mastery.
    """
    if not answers:
        raise ValidationFailed("At least one answer is required")

    skill = db.query(Skill).filter(Skill.id == skill_id).first()
    if not skill:
        raise NotFound("Skill not found")

    score = score_assessment(answers)
    now = utcnow()
    upsert(
        db,
        UserSkill,
        values={
            "user_id": user_id,
            "skill_id": skill_id,
            "current_level": score.level,
            "target_level": initial_target_level(score.level),
            "status": STATUS_ASSESSED,
            "assessed_at": now,
        },
        conflict_columns=["user_id", "skill_id"],
        update_columns=["current_level", "status", "assessed_at"],
    )
    db.commit()

    if cache is not None:
        cache.invalidate(TEAM_PROGRESS)

    user_skill = db.query(UserSkill).filter(
        UserSkill.user_id == user_id,
        UserSkill.skill_id == skill_id
    ).one()
    db.refresh(user_skill)

    logger.info("Assessment recorded for user %s, skill %s: level %s", user_id, skill_id, score.level)
    return AssessmentOutcome(user_skill=user_skill, score=score)


def list_user_skills(db: Session, user_id) -> List[UserSkill]:
    return db.query(UserSkill).filter(UserSkill.user_id == user_id).order_by(UserSkill.assessed_at.desc()).all()
