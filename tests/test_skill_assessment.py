import uuid

import pytest

from skillpath.core.errors import NotFound, ValidationFailed
from skillpath.models import UserSkill
from skillpath.services.scoring import AssessmentAnswer
from skillpath.services.skill_assessment import record_assessment


def test_first_assessment_creates_row_with_target(db, learner, skill):
    outcome = record_assessment(db, learner.id, skill.id, [
        AssessmentAnswer(correct=True),
        AssessmentAnswer(partial_credit=True),
        AssessmentAnswer(),
    ])
    assert outcome.level == 50
    assert outcome.user_skill.current_level == 50
    assert outcome.user_skill.target_level == 80
    assert outcome.user_skill.status == "assessed"
    assert outcome.user_skill.assessed_at is not None


def test_reassessment_updates_instead_of_duplicating(db, learner, skill):
    record_assessment(db, learner.id, skill.id, [AssessmentAnswer(correct=True), AssessmentAnswer()])
    outcome = record_assessment(db, learner.id, skill.id, [AssessmentAnswer(correct=True), AssessmentAnswer(correct=True)])

    rows = db.query(UserSkill).filter(UserSkill.user_id == learner.id, UserSkill.skill_id == skill.id).all()
    assert len(rows) == 1
    assert rows[0].current_level == 100
    # target is only set on the first assessment
    assert rows[0].target_level == 80
    assert outcome.user_skill.id == rows[0].id


def test_target_is_capped_at_100(db, learner, skill):
    outcome = record_assessment(db, learner.id, skill.id, [AssessmentAnswer(correct=True)])
    assert outcome.user_skill.target_level == 100


def test_levels_are_kept_per_user(db, make_user, skill):
    first, second = make_user(), make_user()
    record_assessment(db, first.id, skill.id, [AssessmentAnswer(correct=True)])
    record_assessment(db, second.id, skill.id, [AssessmentAnswer()])
    assert db.query(UserSkill).count() == 2


def test_unknown_skill_is_rejected(db, learner):
    with pytest.raises(NotFound):
        record_assessment(db, learner.id, uuid.uuid4(), [AssessmentAnswer(correct=True)])


def test_empty_answers_are_rejected(db, learner, skill):
    with pytest.raises(ValidationFailed):
        record_assessment(db, learner.id, skill.id, [])
    assert db.query(UserSkill).count() == 0
