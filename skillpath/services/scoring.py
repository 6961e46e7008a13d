"""Answer scoring for quizzes and skill assessments.

Quizzes are graded binary per question. Skill assessments use weighted
partial credit: full points for an exact answer, half points for a near miss.
Nothing here touches the database.
"""
import math
import re
from dataclasses import dataclass, field, asdict
from typing import Dict, List, Mapping, Optional, Sequence

PASS_THRESHOLD = 70

FULL_CREDIT = 10
PARTIAL_CREDIT = 5

_PUNCTUATION = re.compile(r"[^\w\s]")

EXACT_MATCH_TYPES = ("multiple-choice", "true-false")


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (round(2.5) == 3)."""
    return int(math.floor(value + 0.5))


def percentage(part: float, whole: float) -> int:
    if not whole:
        return 0
    return round_half_up(100 * part / whole)


def normalize_answer(answer: Optional[str]) -> str:
    """Lowercase, trim and drop punctuation. Lenient on purpose: "3.14" matches "314"."""
    if not answer:
        return ""
    return _PUNCTUATION.sub("", answer.lower().strip())


def is_correct(question_type: str, correct_answer: str, answer: Optional[str]) -> bool:
    if answer is None or not str(answer).strip():
        return False
    if question_type in EXACT_MATCH_TYPES:
        return answer == correct_answer
    return normalize_answer(answer) == normalize_answer(correct_answer)


def performance_level(grade_percentage: int) -> str:
    if grade_percentage >= 90:
        return "excellent"
    if grade_percentage >= 80:
        return "good"
    if grade_percentage >= PASS_THRESHOLD:
        return "satisfactory"
    return "needs-improvement"


@dataclass
class QuestionFeedback:
    question_id: int
    question: str
    user_answer: Optional[str]
    correct_answer: str
    is_correct: bool
    explanation: str = ""

    def to_dict(self) -> Dict:
        return {
            "questionId": self.question_id,
            "question": self.question,
            "userAnswer": self.user_answer if self.user_answer else "No answer provided",
            "correctAnswer": self.correct_answer,
            "isCorrect": self.is_correct,
            "explanation": self.explanation,
        }


@dataclass
class GradeResult:
    questions: List[QuestionFeedback] = field(default_factory=list)
    correct_count: int = 0
    total_questions: int = 0
    grade_percentage: int = 0
    passed: bool = False

    @property
    def performance_level(self) -> str:
        return performance_level(self.grade_percentage)


def grade_answers(
    questions: Sequence[Mapping],
    answers: Mapping[str, Optional[str]],
    pass_threshold: int = PASS_THRESHOLD,
) -> GradeResult:
    """Grade stored quiz questions against a questionId -> answer mapping.

    Questions use the stored wire shape (``id``, ``question``, ``type``,
    ``correctAnswer``, ``explanation``). Answer keys are compared as strings.
    A missing answer is scored incorrect.
    """
    feedback = []
    correct_count = 0
    for question in questions:
        answer = answers.get(str(question["id"]))
        correct = is_correct(question["type"], question["correctAnswer"], answer)
        if correct:
            correct_count += 1
        feedback.append(QuestionFeedback(
            question_id=question["id"],
            question=question["question"],
            user_answer=answer,
            correct_answer=question["correctAnswer"],
            is_correct=correct,
            explanation=question.get("explanation") or "",
        ))

    grade = percentage(correct_count, len(questions))
    return GradeResult(
        questions=feedback,
        correct_count=correct_count,
        total_questions=len(questions),
        grade_percentage=grade,
        passed=grade >= pass_threshold,
    )


@dataclass
class AssessmentAnswer:
    """One answered skill-assessment question.

    Either give the option indices (``selected_index``/``correct_index``) and
    let adjacency decide partial credit, or pass the ``correct`` and
    ``partial_credit`` flags already decided by the caller.
    """

    correct: bool = False
    partial_credit: bool = False
    selected_index: Optional[int] = None
    correct_index: Optional[int] = None

    def points(self) -> int:
        if self.selected_index is not None and self.correct_index is not None:
            distance = abs(self.selected_index - self.correct_index)
            if distance == 0:
                return FULL_CREDIT
            if distance == 1:
                return PARTIAL_CREDIT
            return 0
        if self.correct:
            return FULL_CREDIT
        if self.partial_credit:
            return PARTIAL_CREDIT
        return 0


@dataclass
class AssessmentScore:
    total_score: int
    max_score: int
    level: int

    def to_dict(self) -> Dict:
        return asdict(self)


def score_assessment(answers: Sequence[AssessmentAnswer]) -> AssessmentScore:
    total = sum(answer.points() for answer in answers)
    maximum = FULL_CREDIT * len(answers)
    return AssessmentScore(total_score=total, max_score=maximum, level=percentage(total, maximum))
