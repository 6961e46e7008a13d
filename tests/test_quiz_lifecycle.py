import json

import pytest

from conftest import ALL_CORRECT, SAMPLE_QUESTIONS
from skillpath.core.errors import AIConfigurationError, GenerationFailed, NotFound, ValidationFailed
from skillpath.models import AIInteraction, Quiz, QuizResponse
from skillpath.services.enrichment import APPLIED, FAILED, SKIPPED
from skillpath.services.llm_service import LLMService
from skillpath.services.quiz_lifecycle import QuizManager, parse_questions

MODULE = dict(module_content="Routing and DNS basics", difficulty_level="beginner", module_id="net-101")


@pytest.fixture
def manager(db, fake_llm):
    return QuizManager(db, fake_llm)


@pytest.fixture
def quiz(manager, learner):
    return manager.generate(learner.id, **MODULE)


def test_generate_persists_quiz_and_logs_usage(db, manager, learner, fake_llm):
    quiz = manager.generate(learner.id, **MODULE)
    assert db.query(Quiz).count() == 1
    assert [q["id"] for q in quiz.questions] == [1, 2, 3, 4, 5]
    assert quiz.questions[3]["options"] is None
    log = db.query(AIInteraction).one()
    assert log.interaction_type == "quiz_generation"
    assert log.tokens_consumed == 321


@pytest.mark.parametrize("count", [4, 6])
def test_wrong_question_count_is_rejected_and_not_stored(db, manager, learner, fake_llm, count):
    questions = (SAMPLE_QUESTIONS * 2)[:count]
    fake_llm.quiz_reply = json.dumps(questions)
    with pytest.raises(GenerationFailed):
        manager.generate(learner.id, **MODULE)
    assert db.query(Quiz).count() == 0


def test_malformed_json_is_rejected(db, manager, learner, fake_llm):
    fake_llm.quiz_reply = "[{not json}]"
    with pytest.raises(GenerationFailed):
        manager.generate(learner.id, **MODULE)
    assert db.query(Quiz).count() == 0


def test_multiple_choice_without_options_is_rejected():
    broken = [dict(q) for q in SAMPLE_QUESTIONS]
    broken[0].pop("options")
    with pytest.raises(GenerationFailed):
        parse_questions(json.dumps(broken), 5)


def test_missing_fields_are_rejected_before_calling_generator(manager, learner, fake_llm):
    with pytest.raises(ValidationFailed):
        manager.generate(learner.id, module_content="", difficulty_level="beginner", module_id="m")
    assert fake_llm.quiz_calls == 0


def test_missing_api_key_fails_generation(db, learner):
    with pytest.raises(AIConfigurationError):
        QuizManager(db, LLMService(api_key="")).generate(learner.id, **MODULE)
    assert db.query(Quiz).count() == 0


def test_unanswered_question_rejects_submission(db, manager, learner, quiz):
    answers = dict(ALL_CORRECT, **{"5": "  "})
    with pytest.raises(ValidationFailed) as exc:
        manager.submit(learner.id, quiz.id, answers)
    assert exc.value.unanswered == [5]
    assert db.query(QuizResponse).count() == 0


def test_high_score_skips_ai_feedback(manager, learner, quiz, fake_llm):
    answers = dict(ALL_CORRECT, **{"3": "D"})
    result = manager.submit(learner.id, quiz.id, answers)
    assert result.primary.grade_percentage == 80
    assert result.primary.feedback["passed"] is True
    assert result.enrichment.status == SKIPPED
    assert fake_llm.feedback_calls == 0


def test_low_score_requests_ai_feedback(db, manager, learner, quiz, fake_llm):
    answers = {"1": "A", "2": "B", "3": "C", "4": "True", "5": "localhost"}
    result = manager.submit(learner.id, quiz.id, answers)
    assert result.primary.grade_percentage == 60
    assert result.primary.feedback["passed"] is False
    assert result.enrichment.status == APPLIED
    assert result.primary.feedback["aiFeedback"] == fake_llm.feedback_reply
    assert db.query(AIInteraction).filter(AIInteraction.interaction_type == "quiz_feedback").count() == 1


def test_feedback_failure_does_not_fail_grading(db, manager, learner, quiz, fake_llm):
    fake_llm.fail_feedback()
    result = manager.submit(learner.id, quiz.id, {"1": "D", "2": "D", "3": "D", "4": "False", "5": "x"})
    assert result.primary.grade_percentage == 0
    assert result.primary.feedback["aiFeedback"] == ""
    assert result.enrichment.status == FAILED
    assert "503" in result.enrichment.error
    assert db.query(QuizResponse).count() == 1


def test_missing_api_key_degrades_feedback(db, learner):
    fake = QuizManager(db, LLMService(api_key=""))
    quiz = Quiz(user_id=learner.id, module_id="m", difficulty_level="beginner", questions=SAMPLE_QUESTIONS)
    db.add(quiz)
    db.commit()
    result = fake.submit(learner.id, quiz.id, {"1": "D", "2": "D", "3": "D", "4": "False", "5": "x"})
    assert result.enrichment.status == FAILED
    assert db.query(QuizResponse).count() == 1


def test_retakes_create_independent_responses(db, manager, learner, quiz):
    first = manager.submit(learner.id, quiz.id, ALL_CORRECT).primary
    second = manager.submit(learner.id, quiz.id, dict(ALL_CORRECT, **{"1": "A", "2": "B"})).primary
    assert first.id != second.id
    assert (first.grade_percentage, second.grade_percentage) == (100, 60)
    assert db.query(QuizResponse).count() == 2
    assert [r.id for r in manager.list_responses(learner.id, quiz.id)] == [first.id, second.id]


def test_other_users_cannot_submit(manager, make_user, quiz):
    with pytest.raises(NotFound):
        manager.submit(make_user().id, quiz.id, ALL_CORRECT)
