"""Client for the external text-generation service (OpenAI-compatible API)."""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

import openai
from openai import OpenAI

from skillpath.core.config import settings
from skillpath.core.errors import AIConfigurationError, UpstreamError

logger = logging.getLogger(__name__)


@dataclass
class ChatResult:
    content: str
    total_tokens: int
    model: str


DIFFICULTY_GUIDELINES = {
    "beginner": "Basic concepts, definitions, simple applications",
    "intermediate": "Applied knowledge, connections between concepts",
    "advanced": "Complex scenarios, critical thinking, synthesis",
}


class LLMService:
    """Service for interacting with the chat-completion endpoint.

    The API key is checked on first use rather than at construction, so
    endpoints that only use the service for best-effort enrichment keep
    working when no key is configured.
    """

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None):
        self.api_key = api_key if api_key is not None else settings.AI_API_KEY
        self.base_url = base_url or settings.AI_BASE_URL
        self.quiz_model = settings.AI_QUIZ_MODEL
        self.feedback_model = settings.AI_FEEDBACK_MODEL
        self._client: Optional[OpenAI] = None

    @property
    def client(self) -> OpenAI:
        if not self.api_key:
            logger.error("AI API key not configured")
            raise AIConfigurationError()
        if self._client is None:
            self._client = OpenAI(api_key=self.api_key, base_url=self.base_url)
        return self._client

    def chat(self, system_prompt: str, user_prompt: str, model: str, max_tokens: int) -> ChatResult:
        """Send one system+user exchange and return the reply text and token usage."""
        try:
            response = self.client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                max_completion_tokens=max_tokens,
            )
        except openai.APIStatusError as e:
            logger.error("AI API error: %s %s", e.status_code, e.message)
            raise UpstreamError(f"AI API error: {e.status_code} {e.message}", upstream_status=e.status_code)
        except openai.APIError as e:
            logger.error("AI API request failed: %s", e)
            raise UpstreamError(f"AI API error: {e}")

        content = response.choices[0].message.content or ""
        tokens = response.usage.total_tokens if response.usage else 0
        return ChatResult(content=content, total_tokens=tokens, model=model)

    def generate_quiz_questions(
        self,
        module_content: str,
        difficulty_level: str,
        num_questions: int = 5,
        topic: Optional[str] = None,
    ) -> ChatResult:
        """Ask for ``num_questions`` questions as a JSON array. Parsing is left to the caller."""
        return self.chat(
            system_prompt=self._build_quiz_system_prompt(difficulty_level, num_questions),
            user_prompt=self._build_quiz_user_prompt(module_content, difficulty_level, num_questions, topic),
            model=self.quiz_model,
            max_tokens=2000,
        )

    def generate_quiz_feedback(
        self,
        results: List[Dict],
        grade_percentage: int,
        correct_count: int,
        total_questions: int,
        difficulty_level: str,
    ) -> ChatResult:
        system_prompt = """You are an expert educational assessor. Provide constructive, encouraging feedback on quiz performance.

Guidelines:
1. Be supportive and motivational
2. Highlight what the student did well
3. Provide specific guidance for improvement
4. Suggest study strategies for areas of weakness
5. Keep feedback concise but actionable"""

        details = "\n".join(
            f"Q: {r['question']}\n"
            f"Student Answer: {r['userAnswer']}\n"
            f"Correct Answer: {r['correctAnswer']}\n"
            f"Result: {'Correct' if r['isCorrect'] else 'Incorrect'}\n"
            for r in results
        )
        user_prompt = f"""QUIZ PERFORMANCE:
- Score: {grade_percentage}%
- Correct: {correct_count}/{total_questions}
- Difficulty: {difficulty_level}

DETAILED RESULTS:
{details}
Provide encouraging feedback and specific improvement suggestions."""

        return self.chat(system_prompt, user_prompt, model=self.feedback_model, max_tokens=500)

    def _build_quiz_system_prompt(self, difficulty_level: str, num_questions: int) -> str:
        guidelines = "\n".join(
            f"- {level.capitalize()}: {text}" for level, text in DIFFICULTY_GUIDELINES.items()
        )
        return f"""You are an expert quiz generator. Create {num_questions} high-quality, personalized quiz questions based on the provided module content.

Requirements:
1. Generate exactly {num_questions} questions
2. Mix question types: multiple-choice (3-4 questions), true-false (1 question), short-answer (0-1 questions)
3. Each multiple-choice question should have 4 options labeled A, B, C, D and a letter as correctAnswer
4. Adjust difficulty based on specified level
5. Include explanations for correct answers
6. Focus on key concepts and practical application

Difficulty Guidelines:
{guidelines}

Return ONLY a valid JSON array with this exact structure:
[
  {{
    "id": 1,
    "question": "Question text here?",
    "type": "multiple-choice",
    "options": ["A. Option 1", "B. Option 2", "C. Option 3", "D. Option 4"],
    "correctAnswer": "A",
    "explanation": "Explanation of why this is correct",
    "difficulty": "{difficulty_level}"
  }}
]"""

    def _build_quiz_user_prompt(
        self,
        module_content: str,
        difficulty_level: str,
        num_questions: int,
        topic: Optional[str],
    ) -> str:
        return f"""DIFFICULTY LEVEL: {difficulty_level}
MODULE TOPIC: {topic or 'Learning Module'}

MODULE CONTENT:
{module_content}

Generate {num_questions} personalized quiz questions based on this content. Make sure questions are relevant, challenging for the {difficulty_level} level, and test real understanding."""


def get_llm_service() -> LLMService:
    """FastAPI dependency; overridden in tests."""
    return LLMService()
