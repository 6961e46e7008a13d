"""Learning session timer routes."""
import uuid
from typing import Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field

from skillpath.db.sessions import get_db
from skillpath.models import LearningSession, User
from skillpath.core.responses import ApiResponse, ok
from skillpath.core.security import get_current_user
from skillpath.services.session_tracker import learning_stats, start_session, stop_session, user_sessions


router = APIRouter(prefix="/sessions", tags=["Learning Sessions"])


class StartSessionRequest(BaseModel):
    session_type: str = Field(pattern="^(course|assessment|practice)$")
    course_id: Optional[uuid.UUID] = None


class SessionOut(BaseModel):
    id: str
    session_type: str
    course_id: Optional[str]
    started_at: str
    ended_at: Optional[str]
    duration_minutes: Optional[int]


class StatsOut(BaseModel):
    total_minutes: int
    today_minutes: int
    week_minutes: int
    month_minutes: int
    streak_days: int
    total_sessions: int


def _session_out(session: LearningSession) -> SessionOut:
    return SessionOut(
        id=str(session.id),
        session_type=session.session_type,
        course_id=str(session.course_id) if session.course_id else None,
        started_at=session.started_at.isoformat(),
        ended_at=session.ended_at.isoformat() if session.ended_at else None,
        duration_minutes=session.duration_minutes,
    )


@router.post("/start", response_model=ApiResponse[SessionOut], status_code=status.HTTP_201_CREATED)
def start(
    request: StartSessionRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Open a timed session. 409 when the user already has one open."""
    session = start_session(db, current_user.id, request.session_type, request.course_id)
    return ok(_session_out(session))


@router.post("/{session_id}/stop", response_model=ApiResponse[SessionOut])
def stop(
    session_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Close a session; the duration is computed server-side. 409 when already closed."""
    return ok(_session_out(stop_session(db, current_user.id, session_id)))


@router.get("", response_model=ApiResponse[list[SessionOut]])
def list_sessions(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return ok([_session_out(s) for s in user_sessions(db, current_user.id)])


@router.get("/stats", response_model=ApiResponse[StatsOut])
def stats(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    result = learning_stats(user_sessions(db, current_user.id))
    return ok(StatsOut(**vars(result)))
