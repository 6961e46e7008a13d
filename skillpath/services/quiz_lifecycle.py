"""Quiz lifecycle: generation, submission and grading.

A quiz attempt moves through ``QuizState``: the generator is asked for
questions (REQUESTED), the validated quiz is stored (GENERATED) and handed
to the learner (IN_PROGRESS); a complete answer set is accepted
(SUBMITTED) and graded into a new QuizResponse row (GRADED). Stored
quizzes are never edited; a retake is a new response row.
"""
import enum
import json
import logging
import re
from typing import Dict, List, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from sqlalchemy.orm import Session

from skillpath.core.config import settings
from skillpath.core.errors import GenerationFailed, NotFound, ValidationFailed
from skillpath.models import AIInteraction, Quiz, QuizResponse
from skillpath.services.enrichment import Enriched, EnrichmentOutcome, run_best_effort
from skillpath.services.llm_service import ChatResult, LLMService
from skillpath.services.scoring import GradeResult, grade_answers

logger = logging.getLogger(__name__)

MODULE_CONTENT_LIMIT = 1000

_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")


class QuizState(str, enum.Enum):
    REQUESTED = "requested"
    GENERATED = "generated"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    GRADED = "graded"


class Question(BaseModel):
    """A generated question as stored on the quiz row (camelCase wire keys)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int
    question: str = Field(min_length=1)
    type: Literal["multiple-choice", "true-false", "short-answer"]
    options: Optional[List[str]] = None
    correct_answer: str = Field(alias="correctAnswer", min_length=1)
    explanation: str = ""
    difficulty: str = ""

    @model_validator(mode="after")
    def _options_only_for_multiple_choice(self):
        if self.type == "multiple-choice":
            if not self.options or len(self.options) < 2:
                raise ValueError("multiple-choice questions need options")
        else:
            self.options = None
        return self


def parse_questions(content: str, expected_count: int) -> List[Question]:
    """Extract and validate the JSON array of questions from a generator reply.

    All-or-nothing: a missing array, invalid JSON, a malformed item or a
    count other than ``expected_count`` raises ``GenerationFailed``.
    Question ids are rewritten to their 1-based position.
    """
    match = _JSON_ARRAY.search(content or "")
    if not match:
        raise GenerationFailed("Failed to generate valid quiz format: no JSON array found in response")
    try:
        raw = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise GenerationFailed(f"Failed to generate valid quiz format: {e}")

    if not isinstance(raw, list) or len(raw) != expected_count:
        count = len(raw) if isinstance(raw, list) else 0
        raise GenerationFailed(
            f"Invalid quiz structure - expected {expected_count} questions, got {count}"
        )

    questions = []
    for position, item in enumerate(raw, 1):
        if not isinstance(item, dict):
            raise GenerationFailed(f"Invalid quiz structure - question {position} is not an object")
        try:
            question = Question.model_validate({**item, "id": position})
        except ValidationError as e:
            raise GenerationFailed(f"Invalid quiz structure - question {position}: {e.errors()[0]['msg']}")
        questions.append(question)
    return questions


def unanswered_questions(questions: List[Mapping], answers: Mapping[str, Optional[str]]) -> List[int]:
    return [
        q["id"] for q in questions
        if not str(answers.get(str(q["id"])) or "").strip()
    ]


class QuizManager:
    """Drives a quiz from generation request to graded response."""

    def __init__(self, db: Session, llm: LLMService, question_count: Optional[int] = None):
        self.db = db
        self.llm = llm
        self.question_count = question_count or settings.QUIZ_QUESTION_COUNT

    def generate(
        self,
        user_id,
        module_content: str,
        difficulty_level: str,
        module_id: str,
        course_id=None,
        topic: Optional[str] = None,
    ) -> Quiz:
        if not module_content or not difficulty_level or not module_id:
            raise ValidationFailed("Missing required fields: module_content, difficulty_level, module_id")

        logger.info("Generating quiz for user %s, difficulty: %s, module: %s", user_id, difficulty_level, module_id)
        result = self.llm.generate_quiz_questions(
            module_content=module_content,
            difficulty_level=difficulty_level,
            num_questions=self.question_count,
            topic=topic,
        )
        questions = parse_questions(result.content, self.question_count)

        quiz = Quiz(
            user_id=user_id,
            course_id=course_id,
            module_id=module_id,
            module_content=module_content[:MODULE_CONTENT_LIMIT],
            difficulty_level=difficulty_level,
            questions=[q.model_dump(by_alias=True) for q in questions],
        )
        self.db.add(quiz)
        self.db.commit()
        self.db.refresh(quiz)

        self._log_interaction(
            user_id,
            "quiz_generation",
            f"Generate {difficulty_level} quiz for module: {module_id}",
            f"Generated {len(questions)} questions for {difficulty_level} difficulty",
            result,
        )
        logger.info("Quiz generated for user %s, quiz ID: %s, tokens: %s", user_id, quiz.id, result.total_tokens)
        return quiz

    def get_quiz(self, user_id, quiz_id) -> Quiz:
        quiz = self.db.query(Quiz).filter(Quiz.id == quiz_id, Quiz.user_id == user_id).first()
        if not quiz:
            raise NotFound("Quiz not found")
        return quiz

    def list_responses(self, user_id, quiz_id) -> List[QuizResponse]:
        quiz = self.get_quiz(user_id, quiz_id)
        return self.db.query(QuizResponse).filter(
            QuizResponse.quiz_id == quiz.id,
            QuizResponse.user_id == user_id
        ).order_by(QuizResponse.completed_at).all()

    def submit(self, user_id, quiz_id, answers: Mapping[str, Optional[str]]) -> Enriched[QuizResponse]:
        """Grade a complete answer set and store it as a new response row.

        Rejects the submission without writing anything when any question
        is unanswered. AI feedback is requested only below the feedback
        threshold and never fails the grading.
        """
        quiz = self.get_quiz(user_id, quiz_id)
        answers = {str(k): v for k, v in (answers or {}).items()}

        missing = unanswered_questions(quiz.questions, answers)
        if missing:
            raise ValidationFailed(
                f"All questions must be answered before submitting; unanswered: {missing}",
                unanswered=missing,
            )

        graded = grade_answers(quiz.questions, answers, pass_threshold=settings.PASS_THRESHOLD)
        results = [q.to_dict() for q in graded.questions]

        if graded.grade_percentage < settings.FEEDBACK_THRESHOLD:
            logger.info("Generating AI feedback for user %s, score: %s%%", user_id, graded.grade_percentage)
            enrichment = run_best_effort("AI feedback generation", self._ai_feedback, user_id, quiz, graded, results)
        else:
            enrichment = EnrichmentOutcome.skipped("score at or above feedback threshold")

        response = QuizResponse(
            user_id=user_id,
            quiz_id=quiz.id,
            answers=answers,
            grade_percentage=graded.grade_percentage,
            feedback={
                "questions": results,
                "aiFeedback": enrichment.value or "",
                "score": graded.grade_percentage,
                "passed": graded.passed,
                "performanceLevel": graded.performance_level,
            },
        )
        self.db.add(response)
        self.db.commit()
        self.db.refresh(response)

        logger.info("Quiz graded for user %s, score: %s%%", user_id, graded.grade_percentage)
        return Enriched(primary=response, enrichment=enrichment)

    def _ai_feedback(self, user_id, quiz: Quiz, graded: GradeResult, results: List[Dict]) -> str:
        result = self.llm.generate_quiz_feedback(
            results=results,
            grade_percentage=graded.grade_percentage,
            correct_count=graded.correct_count,
            total_questions=graded.total_questions,
            difficulty_level=quiz.difficulty_level,
        )
        self._log_interaction(
            user_id,
            "quiz_feedback",
            f"Feedback for quiz score: {graded.grade_percentage}%",
            result.content,
            result,
        )
        return result.content

    def _log_interaction(self, user_id, interaction_type: str, prompt: str, output: str, result: ChatResult) -> None:
        def write():
            self.db.add(AIInteraction(
                user_id=user_id,
                interaction_type=interaction_type,
                input_prompt=prompt,
                output_response=output,
                model_used=result.model,
                tokens_consumed=result.total_tokens,
            ))
            self.db.commit()

        outcome = run_best_effort(f"Logging {interaction_type}", write)
        if not outcome.applied:
            self.db.rollback()
