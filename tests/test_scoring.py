import pytest

from conftest import ALL_CORRECT, SAMPLE_QUESTIONS
from skillpath.services.scoring import (
    AssessmentAnswer,
    grade_answers,
    is_correct,
    normalize_answer,
    performance_level,
    round_half_up,
    score_assessment,
)


def test_all_correct_answers_score_100():
    result = grade_answers(SAMPLE_QUESTIONS, ALL_CORRECT)
    assert result.grade_percentage == 100
    assert result.correct_count == 5
    assert result.passed is True
    assert all(q.is_correct for q in result.questions)


def test_no_answers_scores_zero_and_marks_everything_incorrect():
    result = grade_answers(SAMPLE_QUESTIONS, {})
    assert result.grade_percentage == 0
    assert result.passed is False
    assert not any(q.is_correct for q in result.questions)
    assert result.questions[0].to_dict()["userAnswer"] == "No answer provided"


def test_four_of_five_is_eighty_and_passes():
    answers = dict(ALL_CORRECT, **{"3": "D"})
    result = grade_answers(SAMPLE_QUESTIONS, answers)
    assert result.grade_percentage == 80
    assert result.passed is True
    assert result.performance_level == "good"


def test_pass_threshold_is_seventy():
    questions = [
        {"id": i, "question": f"q{i}", "type": "short-answer", "correctAnswer": "yes"}
        for i in range(1, 11)
    ]
    seven = {str(i): "yes" for i in range(1, 8)}
    six = {str(i): "yes" for i in range(1, 7)}
    assert grade_answers(questions, seven).passed is True
    assert grade_answers(questions, six).passed is False


def test_multiple_choice_is_exact_and_case_sensitive():
    assert is_correct("multiple-choice", "A", "A")
    assert not is_correct("multiple-choice", "A", "a")
    assert not is_correct("true-false", "True", "true")


def test_short_answer_is_normalized():
    assert is_correct("short-answer", "Local Host!", "  local host ")
    assert is_correct("short-answer", "don't", "dont")
    assert not is_correct("short-answer", "localhost", "")


@pytest.mark.parametrize("raw,expected", [
    ("  Hello, World! ", "hello world"),
    ("3.14", "314"),
    (None, ""),
])
def test_normalize_answer(raw, expected):
    assert normalize_answer(raw) == expected


def test_empty_question_list_grades_to_zero():
    result = grade_answers([], {"1": "A"})
    assert result.grade_percentage == 0
    assert result.total_questions == 0


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(66.666) == 67
    assert round_half_up(0.49) == 0


@pytest.mark.parametrize("grade,level", [
    (95, "excellent"), (80, "good"), (70, "satisfactory"), (69, "needs-improvement"),
])
def test_performance_levels(grade, level):
    assert performance_level(grade) == level


def test_assessment_weights_correct_partial_incorrect():
    score = score_assessment([
        AssessmentAnswer(correct=True),
        AssessmentAnswer(partial_credit=True),
        AssessmentAnswer(),
    ])
    assert (score.total_score, score.max_score, score.level) == (15, 30, 50)


def test_assessment_adjacent_option_gets_half_credit():
    score = score_assessment([
        AssessmentAnswer(selected_index=2, correct_index=2),
        AssessmentAnswer(selected_index=1, correct_index=2),
        AssessmentAnswer(selected_index=0, correct_index=3),
    ])
    assert score.total_score == 15
    assert score.level == 50


def test_assessment_without_answers_is_zero():
    assert score_assessment([]).level == 0
