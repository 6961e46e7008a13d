"""Learning session timer, streaks and time statistics.

Durations are always computed here from the stored start time; the client
never supplies them.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from skillpath.core.errors import Conflict, NotFound, SessionNotOpen, ValidationFailed
from skillpath.db.base import utcnow
from skillpath.models import LearningSession
from skillpath.models.learning_session import SESSION_TYPES
from skillpath.services.scoring import round_half_up

logger = logging.getLogger(__name__)


def start_session(db: Session, user_id, session_type: str, course_id=None) -> LearningSession:
    """Open a session. A user may have at most one open session."""
    if session_type not in SESSION_TYPES:
        raise ValidationFailed(f"Invalid session_type: {session_type}")

    open_session = db.query(LearningSession).filter(
        LearningSession.user_id == user_id,
        LearningSession.ended_at.is_(None)
    ).first()
    if open_session:
        raise Conflict(f"Session {open_session.id} is still open; stop it before starting another")

    session = LearningSession(
        user_id=user_id,
        course_id=course_id,
        session_type=session_type,
        started_at=utcnow(),
    )
    db.add(session)
    db.commit()
    db.refresh(session)
    logger.info("Learning session %s started for user %s (%s)", session.id, user_id, session_type)
    return session


def elapsed_minutes(started_at: datetime, ended_at: datetime) -> int:
    return max(0, round_half_up((ended_at - started_at).total_seconds() / 60))


def stop_session(db: Session, user_id, session_id, now: Optional[datetime] = None) -> LearningSession:
    """Close an open session and store its duration.

    The close is a conditional UPDATE on ``ended_at IS NULL``, so of two
    concurrent stops exactly one succeeds; the other gets ``SessionNotOpen``.
    """
    session = db.query(LearningSession).filter(
        LearningSession.id == session_id,
        LearningSession.user_id == user_id
    ).first()
    if not session:
        raise NotFound("Session not found")
    if not session.is_open:
        raise SessionNotOpen("Session is not open")

    ended_at = now or utcnow()
    duration = elapsed_minutes(session.started_at, ended_at)
    result = db.execute(
        update(LearningSession)
        .where(LearningSession.id == session.id, LearningSession.ended_at.is_(None))
        .values(ended_at=ended_at, duration_minutes=duration)
    )
    if result.rowcount == 0:
        db.rollback()
        raise SessionNotOpen("Session is not open")
    db.commit()
    db.refresh(session)
    logger.info("Learning session %s stopped after %s minutes", session.id, duration)
    return session


def user_sessions(db: Session, user_id) -> List[LearningSession]:
    return db.query(LearningSession).filter(
        LearningSession.user_id == user_id
    ).order_by(LearningSession.started_at.desc()).all()


def calculate_streak(sessions: Iterable, today: Optional[date] = None) -> int:
    """Consecutive days, walking back from ``today``, with a completed session.

    Only sessions with a duration count. A day without one ends the streak,
    including today itself.
    """
    days = {s.started_at.date() for s in sessions if s.duration_minutes is not None}
    day = today or utcnow().date()
    streak = 0
    while day in days:
        streak += 1
        day -= timedelta(days=1)
    return streak


@dataclass
class LearningStats:
    total_minutes: int = 0
    today_minutes: int = 0
    week_minutes: int = 0
    month_minutes: int = 0
    streak_days: int = 0
    total_sessions: int = 0


def learning_stats(sessions: Iterable, now: Optional[datetime] = None) -> LearningStats:
    """Minutes studied today, this week (weeks start on Sunday), this month and overall."""
    closed = [s for s in sessions if s.duration_minutes is not None]
    now = now or utcnow()
    today = datetime(now.year, now.month, now.day)
    week_start = today - timedelta(days=(today.weekday() + 1) % 7)
    month_start = datetime(now.year, now.month, 1)

    def minutes_since(start: datetime) -> int:
        return sum(s.duration_minutes for s in closed if s.started_at >= start)

    return LearningStats(
        total_minutes=sum(s.duration_minutes for s in closed),
        today_minutes=minutes_since(today),
        week_minutes=minutes_since(week_start),
        month_minutes=minutes_since(month_start),
        streak_days=calculate_streak(closed, today.date()),
        total_sessions=len(closed),
    )
