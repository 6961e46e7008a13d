from types import SimpleNamespace

from skillpath.services.progress_aggregator import (
    summarize_skill_categories,
    summarize_team,
    summarize_user,
    summarize_users,
    top_performers,
)


def row(user, module, pct, status="in_progress", module_type="course"):
    return SimpleNamespace(
        user_id=user, module_id=module, module_type=module_type,
        completion_percentage=pct, status=status,
    )


def test_empty_input_yields_zeros():
    summary = summarize_user([])
    assert summary.average_completion == 0
    assert summary.completed_count == 0
    assert summarize_users([]) == []
    assert top_performers([]) == []

    team = summarize_team([], [])
    assert team.average_progress == 0
    assert team.member_count == 0
    assert team.top_performers == []
    assert summarize_skill_categories([]) == []


def test_user_average_and_completed_count():
    summary = summarize_user([row("u1", "m1", 100, "completed"), row("u1", "m2", 50), row("u1", "m3", 0, "not_started")])
    assert summary.average_completion == 50.0
    assert summary.completed_count == 1
    assert summary.total_modules == 3


def test_top_performers_ordering_and_ties():
    rows = [
        row("a", "m1", 50), row("a", "m2", 50),
        row("b", "m1", 100, "completed"), row("b", "m2", 0),
        row("c", "m1", 90, "completed"),
        row("d", "m1", 50), row("d", "m2", 50),
    ]
    ranked = [s.user_id for s in top_performers(rows)]
    # c leads; b ties a and d on average but has a completed module; a stays ahead of d
    assert ranked == ["c", "b", "a", "d"]
    assert [s.user_id for s in top_performers(rows, limit=2)] == ["c", "b"]


def test_team_rollup_is_scoped_to_members():
    rows = [
        row("u1", "c1", 100, "completed"),
        row("u1", "q1", 40, module_type="quiz"),
        row("u2", "c2", 60),
        row("outsider", "c1", 100, "completed"),
    ]
    team = summarize_team(rows, ["u1", "u2", "u3"], course_difficulty={"c1": "beginner", "c2": "advanced"})

    assert team.member_count == 3
    assert team.total_modules == 3
    assert team.completed_modules == 1
    assert team.average_progress == round(200 / 3, 2)
    assert team.by_module_type["course"].total == 2
    assert team.by_module_type["quiz"].average_completion == 40
    assert team.by_difficulty["beginner"].percentage == 100
    assert team.by_difficulty["advanced"].completed == 0
    assert team.by_difficulty["intermediate"].total == 0
    # members without progress are still listed
    assert [m.user_id for m in team.members] == ["u1", "u2", "u3"]
    assert team.members[2].average_completion == 0
    assert team.top_performers[0].user_id == "u1"


def test_skill_categories():
    summary = summarize_skill_categories([("Cloud", 90), ("Cloud", 60), (None, 85)])
    cloud, other = summary
    assert (cloud.category, cloud.total, cloud.average_level, cloud.mastered, cloud.mastery_rate) == ("Cloud", 2, 75, 1, 50)
    assert other.category == "Other"
    assert other.mastery_rate == 100
