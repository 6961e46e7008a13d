import json
import os
import uuid

# Configure before the application modules read settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret"
os.environ.pop("AI_API_KEY", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from skillpath.core.errors import UpstreamError
from skillpath.core.security import create_access_token
from skillpath.db.base import Base
from skillpath.db.sessions import get_db
from skillpath.main import app
from skillpath.models import Skill, User
from skillpath.services.llm_service import ChatResult, get_llm_service


SAMPLE_QUESTIONS = [
    {"id": 1, "question": "Which layer routes packets?", "type": "multiple-choice",
     "options": ["A. Physical", "B. Network", "C. Session", "D. Application"],
     "correctAnswer": "B", "explanation": "Routing happens at layer 3.", "difficulty": "beginner"},
    {"id": 2, "question": "Which protocol resolves names?", "type": "multiple-choice",
     "options": ["A. DNS", "B. ARP", "C. ICMP", "D. FTP"],
     "correctAnswer": "A", "explanation": "DNS maps names to addresses.", "difficulty": "beginner"},
    {"id": 3, "question": "Which port does HTTPS use?", "type": "multiple-choice",
     "options": ["A. 21", "B. 80", "C. 443", "D. 25"],
     "correctAnswer": "C", "explanation": "HTTPS listens on 443.", "difficulty": "beginner"},
    {"id": 4, "question": "TCP is connection-oriented.", "type": "true-false",
     "correctAnswer": "True", "explanation": "TCP performs a handshake.", "difficulty": "beginner"},
    {"id": 5, "question": "Name the loopback hostname.", "type": "short-answer",
     "correctAnswer": "localhost", "explanation": "127.0.0.1 is localhost.", "difficulty": "beginner"},
]

ALL_CORRECT = {"1": "B", "2": "A", "3": "C", "4": "True", "5": "localhost"}


class FakeLLM:
    """Scripted stand-in for LLMService."""

    def __init__(self):
        self.quiz_reply = "Here is your quiz:\n" + json.dumps(SAMPLE_QUESTIONS)
        self.feedback_reply = "Review routing basics and try again."
        self.quiz_error = None
        self.feedback_error = None
        self.quiz_calls = 0
        self.feedback_calls = 0

    def generate_quiz_questions(self, module_content, difficulty_level, num_questions=5, topic=None):
        self.quiz_calls += 1
        if self.quiz_error is not None:
            raise self.quiz_error
        return ChatResult(content=self.quiz_reply, total_tokens=321, model="fake-quiz")

    def generate_quiz_feedback(self, results, grade_percentage, correct_count, total_questions, difficulty_level):
        self.feedback_calls += 1
        if self.feedback_error is not None:
            raise self.feedback_error
        return ChatResult(content=self.feedback_reply, total_tokens=42, model="fake-feedback")

    def fail_feedback(self, status_code=503):
        self.feedback_error = UpstreamError(f"AI API error: {status_code} unavailable", upstream_status=status_code)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def client(db, fake_llm):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_llm_service] = lambda: fake_llm
    app.state.cache.clear()
    yield TestClient(app)
    app.dependency_overrides.clear()
    app.state.cache.clear()


@pytest.fixture
def make_user(db):
    def _make(role="learner", name=None):
        name = name or f"user-{uuid.uuid4().hex[:8]}"
        user = User(full_name=name, email=f"{name}@example.com", password_hash="!", role=role)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def learner(make_user):
    return make_user()


@pytest.fixture
def manager(make_user):
    return make_user(role="manager")


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}


@pytest.fixture
def skill(db):
    skill = Skill(name="Networking", category="Infrastructure", industry="tech", difficulty_level=2)
    db.add(skill)
    db.commit()
    db.refresh(skill)
    return skill
