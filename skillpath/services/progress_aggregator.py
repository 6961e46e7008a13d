"""Fold per-module progress rows into per-user and per-team statistics.

All functions are pure: they accept any objects exposing ``user_id``,
``module_id``, ``module_type``, ``completion_percentage`` and ``status``
(ORM rows or plain dataclasses) and never raise on empty input.
"""
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from skillpath.models.course import DIFFICULTY_LEVELS
from skillpath.services.scoring import percentage, round_half_up

COMPLETED = "completed"
MASTERY_LEVEL = 80


def _mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return round(sum(values) / len(values), 2)


@dataclass
class UserProgressSummary:
    user_id: str
    average_completion: float = 0.0
    completed_count: int = 0
    total_modules: int = 0


@dataclass
class BreakdownEntry:
    total: int = 0
    completed: int = 0
    average_completion: float = 0.0
    percentage: int = 0


@dataclass
class TeamProgressSummary:
    member_count: int = 0
    average_progress: float = 0.0
    completed_modules: int = 0
    total_modules: int = 0
    by_module_type: Dict[str, BreakdownEntry] = field(default_factory=dict)
    by_difficulty: Dict[str, BreakdownEntry] = field(default_factory=dict)
    members: List[UserProgressSummary] = field(default_factory=list)
    top_performers: List[UserProgressSummary] = field(default_factory=list)


@dataclass
class SkillCategorySummary:
    category: str
    total: int = 0
    average_level: int = 0
    mastered: int = 0
    mastery_rate: int = 0


def summarize_user(rows: Iterable, user_id: Optional[str] = None) -> UserProgressSummary:
    rows = list(rows)
    if user_id is None and rows:
        user_id = str(rows[0].user_id)
    return UserProgressSummary(
        user_id=str(user_id) if user_id is not None else "",
        average_completion=_mean([r.completion_percentage or 0 for r in rows]),
        completed_count=sum(1 for r in rows if r.status == COMPLETED),
        total_modules=len(rows),
    )


def _group_by_user(rows: Iterable) -> "OrderedDict[str, list]":
    grouped: "OrderedDict[str, list]" = OrderedDict()
    for row in rows:
        grouped.setdefault(str(row.user_id), []).append(row)
    return grouped


def summarize_users(rows: Iterable) -> List[UserProgressSummary]:
    return [summarize_user(user_rows, user_id) for user_id, user_rows in _group_by_user(rows).items()]


def rank_performers(summaries: Sequence[UserProgressSummary], limit: Optional[int] = None) -> List[UserProgressSummary]:
    # sorted() is stable, so equal keys keep their input order
    ranked = sorted(summaries, key=lambda s: (-s.average_completion, -s.completed_count))
    return ranked[:limit] if limit is not None else ranked


def top_performers(rows: Iterable, limit: Optional[int] = None) -> List[UserProgressSummary]:
    return rank_performers(summarize_users(rows), limit)


def _breakdown(rows: Sequence) -> BreakdownEntry:
    completed = sum(1 for r in rows if r.status == COMPLETED)
    return BreakdownEntry(
        total=len(rows),
        completed=completed,
        average_completion=_mean([r.completion_percentage or 0 for r in rows]),
        percentage=percentage(completed, len(rows)),
    )


def summarize_team(
    rows: Iterable,
    member_ids: Iterable,
    course_difficulty: Optional[Mapping[str, str]] = None,
    top_limit: Optional[int] = 5,
) -> TeamProgressSummary:
    """Roll up progress for a team.

    ``member_ids`` scopes the rows; rows of non-members are ignored.
    ``course_difficulty`` maps module ids to a course difficulty level and
    is owned by the caller; modules missing from it do not count towards
    the difficulty breakdown.
    """
    members = [str(m) for m in member_ids]
    member_set = set(members)
    scoped = [r for r in rows if str(r.user_id) in member_set]

    per_user = _group_by_user(scoped)
    summaries = [summarize_user(per_user.get(user_id, []), user_id) for user_id in members]

    by_type: "OrderedDict[str, list]" = OrderedDict()
    for row in scoped:
        by_type.setdefault(row.module_type, []).append(row)

    difficulty_map = course_difficulty or {}
    by_level: Dict[str, list] = {level: [] for level in DIFFICULTY_LEVELS}
    for row in scoped:
        level = difficulty_map.get(str(row.module_id))
        if level in by_level:
            by_level[level].append(row)

    return TeamProgressSummary(
        member_count=len(members),
        average_progress=_mean([r.completion_percentage or 0 for r in scoped]),
        completed_modules=sum(1 for r in scoped if r.status == COMPLETED),
        total_modules=len(scoped),
        by_module_type={module_type: _breakdown(group) for module_type, group in by_type.items()},
        by_difficulty={level: _breakdown(group) for level, group in by_level.items()},
        members=summaries,
        top_performers=rank_performers(summaries, top_limit),
    )


def summarize_skill_categories(levels: Iterable[Tuple[Optional[str], int]]) -> List[SkillCategorySummary]:
    """Summarize (category, current_level) pairs; a missing category counts as "Other"."""
    grouped: "OrderedDict[str, List[int]]" = OrderedDict()
    for category, level in levels:
        grouped.setdefault(category or "Other", []).append(level or 0)

    summaries = []
    for category, values in grouped.items():
        mastered = sum(1 for v in values if v >= MASTERY_LEVEL)
        summaries.append(SkillCategorySummary(
            category=category,
            total=len(values),
            average_level=round_half_up(sum(values) / len(values)),
            mastered=mastered,
            mastery_rate=percentage(mastered, len(values)),
        ))
    return summaries
