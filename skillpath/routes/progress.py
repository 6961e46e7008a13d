"""Progress routes."""
from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field

from skillpath.db.sessions import get_db
from skillpath.models import Progress, User
from skillpath.core.responses import ApiResponse, ok
from skillpath.core.security import get_current_user
from skillpath.services.cache import ReadCache, get_cache
from skillpath.services.progress_aggregator import summarize_user
from skillpath.services.progress_service import upsert_progress, user_progress


router = APIRouter(prefix="/progress", tags=["Progress"])


class ProgressIn(BaseModel):
    module_id: str = Field(min_length=1)
    module_type: str = Field(min_length=1)
    completion_percentage: int = Field(ge=0, le=100)
    status: str = Field(pattern="^(not_started|in_progress|completed)$")


class ProgressOut(BaseModel):
    id: str
    module_id: str
    module_type: str
    completion_percentage: int
    status: str
    completed_at: Optional[str]


class ProgressSummaryOut(BaseModel):
    average_completion: float
    completed_count: int
    total_modules: int


def _progress_out(row: Progress) -> ProgressOut:
    return ProgressOut(
        id=str(row.id),
        module_id=row.module_id,
        module_type=row.module_type,
        completion_percentage=row.completion_percentage,
        status=row.status,
        completed_at=row.completed_at.isoformat() if row.completed_at else None,
    )


@router.post("", response_model=ApiResponse[ProgressOut])
def record_progress(
    request: ProgressIn,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: ReadCache = Depends(get_cache)
):
    """Create or update the current user's progress on a module."""
    row = upsert_progress(
        db,
        current_user.id,
        module_id=request.module_id,
        module_type=request.module_type,
        completion_percentage=request.completion_percentage,
        status=request.status,
        cache=cache,
    )
    return ok(_progress_out(row))


@router.get("", response_model=ApiResponse[list[ProgressOut]])
def list_progress(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return ok([_progress_out(row) for row in user_progress(db, current_user.id)])


@router.get("/summary", response_model=ApiResponse[ProgressSummaryOut])
def progress_summary(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    summary = summarize_user(user_progress(db, current_user.id), str(current_user.id))
    return ok(ProgressSummaryOut(
        average_completion=summary.average_completion,
        completed_count=summary.completed_count,
        total_modules=summary.total_modules,
    ))
