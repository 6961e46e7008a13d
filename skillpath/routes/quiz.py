"""Quiz routes."""
import uuid
from typing import Dict, List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field

from skillpath.db.sessions import get_db
from skillpath.models import Quiz, QuizResponse, User
from skillpath.core.responses import ApiResponse, ok
from skillpath.core.security import get_current_user
from skillpath.services.llm_service import LLMService, get_llm_service
from skillpath.services.quiz_lifecycle import QuizManager, QuizState


router = APIRouter(prefix="/quiz", tags=["Quiz"])


# Request/Response schemas
class GenerateQuizRequest(BaseModel):
    module_content: str = Field(min_length=1)
    difficulty_level: str = Field(pattern="^(beginner|intermediate|advanced)$")
    module_id: str = Field(min_length=1)
    course_id: Optional[uuid.UUID] = None
    topic: Optional[str] = None


class QuestionOut(BaseModel):
    id: int
    question: str
    type: str
    options: Optional[List[str]] = None
    difficulty: str = ""


class QuizOut(BaseModel):
    id: str
    user_id: str
    course_id: Optional[str]
    module_id: str
    difficulty_level: str
    state: str
    created_at: str
    questions: List[QuestionOut]


class GradeQuizRequest(BaseModel):
    quiz_id: uuid.UUID
    answers: Dict[str, Optional[str]]  # question id -> answer


class QuestionResult(BaseModel):
    questionId: int
    question: str
    userAnswer: str
    correctAnswer: str
    isCorrect: bool
    explanation: str = ""


class GradeQuizResponse(BaseModel):
    response_id: str
    quiz_id: str
    state: str
    grade_percentage: int
    correct_count: int
    total_questions: int
    passed: bool
    performance_level: str
    feedback: List[QuestionResult]
    ai_feedback: str
    ai_feedback_status: str


class AttemptOut(BaseModel):
    id: str
    grade_percentage: int
    passed: bool
    completed_at: str


def get_quiz_manager(
    db: Session = Depends(get_db),
    llm: LLMService = Depends(get_llm_service)
) -> QuizManager:
    return QuizManager(db, llm)


def _quiz_out(quiz: Quiz, state: QuizState = QuizState.IN_PROGRESS) -> QuizOut:
    # the answer key stays on the server until the quiz is graded
    return QuizOut(
        id=str(quiz.id),
        user_id=str(quiz.user_id),
        course_id=str(quiz.course_id) if quiz.course_id else None,
        module_id=quiz.module_id,
        difficulty_level=quiz.difficulty_level,
        state=state.value,
        created_at=quiz.created_at.isoformat(),
        questions=[QuestionOut(**q) for q in quiz.questions],
    )


@router.post("/generate", response_model=ApiResponse[QuizOut], status_code=status.HTTP_201_CREATED)
def generate_quiz(
    request: GenerateQuizRequest,
    current_user: User = Depends(get_current_user),
    manager: QuizManager = Depends(get_quiz_manager)
):
    """
    Generate a quiz for a course module.

    The generator must return exactly 5 well-formed questions; anything
    else fails the request and nothing is stored.
    """
    quiz = manager.generate(
        user_id=current_user.id,
        module_content=request.module_content,
        difficulty_level=request.difficulty_level,
        module_id=request.module_id,
        course_id=request.course_id,
        topic=request.topic,
    )
    return ok(_quiz_out(quiz))


@router.post("/grade", response_model=ApiResponse[GradeQuizResponse])
def grade_quiz(
    request: GradeQuizRequest,
    current_user: User = Depends(get_current_user),
    manager: QuizManager = Depends(get_quiz_manager)
):
    """
    Grade a complete answer set. Every call stores a new attempt.

    Rejected with 400 (listing the unanswered question ids) when any
    question has no answer.
    """
    enriched = manager.submit(current_user.id, request.quiz_id, request.answers)
    response: QuizResponse = enriched.primary
    feedback = response.feedback

    return ok(GradeQuizResponse(
        response_id=str(response.id),
        quiz_id=str(response.quiz_id),
        state=QuizState.GRADED.value,
        grade_percentage=response.grade_percentage,
        correct_count=sum(1 for q in feedback["questions"] if q["isCorrect"]),
        total_questions=len(feedback["questions"]),
        passed=feedback["passed"],
        performance_level=feedback["performanceLevel"],
        feedback=[QuestionResult(**q) for q in feedback["questions"]],
        ai_feedback=feedback["aiFeedback"],
        ai_feedback_status=enriched.enrichment.status,
    ))


@router.get("/{quiz_id}", response_model=ApiResponse[QuizOut])
def get_quiz(
    quiz_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    manager: QuizManager = Depends(get_quiz_manager)
):
    """A quiz owned by the current user, without the answer key."""
    return ok(_quiz_out(manager.get_quiz(current_user.id, quiz_id)))


@router.get("/{quiz_id}/responses", response_model=ApiResponse[List[AttemptOut]])
def list_attempts(
    quiz_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    manager: QuizManager = Depends(get_quiz_manager)
):
    """All graded attempts of the current user for a quiz, oldest first."""
    return ok([
        AttemptOut(
            id=str(r.id),
            grade_percentage=r.grade_percentage,
            passed=r.feedback.get("passed", False),
            completed_at=r.completed_at.isoformat(),
        )
        for r in manager.list_responses(current_user.id, quiz_id)
    ])
