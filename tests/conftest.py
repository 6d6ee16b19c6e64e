"""Test configuration and fixtures."""

import os
import tempfile

# Configure the application before it is imported
os.environ["DATABASE_URL"] = "sqlite:///./test_feedback.db"
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="feedback-uploads-"))
os.environ.pop("OPENAI_API_KEY", None)
os.environ.pop("OPENAI_BASE_URL", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from feedback_api.main import app
from feedback_api.database import Base, enable_sqlite_foreign_keys, get_db
from feedback_api.ai import GeneratedFeedback, get_feedback_generator
from feedback_api.auth.service import AuthService
from feedback_api.extraction import ContentProcessor, get_content_processor
from feedback_api.models import (
    Assignment, Feedback, FeedbackStatus, Submission, ExtractionStatus, User, UserRole,
)

# Use in-memory SQLite for testing
TEST_DATABASE_URL = "sqlite://"
TEST_PASSWORD = "TestPass123!"

ESSAY_RUBRIC = [
    {"name": "Thesis", "points": 25, "description": "Clear thesis statement"},
    {"name": "Organization", "points": 25, "description": "Logical structure"},
    {"name": "Evidence", "points": 25, "description": "Supporting evidence"},
    {"name": "Grammar", "points": 25, "description": "Proper grammar"},
]


@pytest.fixture
def engine():
    """Create a fresh in-memory database for each test."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", enable_sqlite_foreign_keys)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    """Create test database session."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def upload_processor(tmp_path):
    return ContentProcessor(upload_dir=str(tmp_path / "uploads"), max_file_size=64 * 1024)


class FakeFeedbackGenerator:
    """Stands in for the language model client."""

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    async def generate(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def fake_generator():
    return FakeFeedbackGenerator(result=GeneratedFeedback(
        summary="A clear essay with a focused thesis.",
        strengths=["Strong thesis", "Good transitions"],
        improvements=["Cite more sources"],
        criteria_scores=[
            {"criterion": "Thesis", "score": 22, "max_points": 25, "comment": "Focused."},
            {"criterion": "Organization", "score": 20, "max_points": 25, "comment": "Mostly logical."},
            {"criterion": "Evidence", "score": 15, "max_points": 25, "comment": "Thin."},
            {"criterion": "Grammar", "score": 23, "max_points": 25, "comment": "Clean."},
        ],
        score=80,
        model="gpt-test",
        prompt_tokens=120,
        completion_tokens=80,
        latency_ms=350,
    ))


@pytest.fixture
def client(db_session, upload_processor, fake_generator):
    """Test client sharing the test session, upload directory and fake model."""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_content_processor] = lambda: upload_processor
    app.dependency_overrides[get_feedback_generator] = lambda: fake_generator

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def make_user(db_session, email, role, full_name=None, password=TEST_PASSWORD):
    user = User(email=email, full_name=full_name or email.split("@")[0], role=role, is_active=True)
    user.set_password(password)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def auth_headers(db_session, user):
    token = AuthService(db_session).create_access_token_for(user)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def student(db_session):
    return make_user(db_session, "student@example.com", UserRole.student, "Sam Student")


@pytest.fixture
def other_student(db_session):
    return make_user(db_session, "other.student@example.com", UserRole.student, "Olive Other")


@pytest.fixture
def professor(db_session):
    return make_user(db_session, "professor@example.com", UserRole.professor, "Pat Professor")


@pytest.fixture
def other_professor(db_session):
    return make_user(db_session, "other.professor@example.com", UserRole.professor, "Quinn Other")


@pytest.fixture
def admin(db_session):
    return make_user(db_session, "admin@example.com", UserRole.admin, "Ada Admin")


@pytest.fixture
def student_headers(db_session, student):
    return auth_headers(db_session, student)


@pytest.fixture
def professor_headers(db_session, professor):
    return auth_headers(db_session, professor)


@pytest.fixture
def admin_headers(db_session, admin):
    return auth_headers(db_session, admin)


@pytest.fixture
def sample_assignment(db_session, professor):
    """A published essay assignment with a 100-point rubric."""
    assignment = Assignment(
        title="Persuasive Essay",
        description="Write a five-paragraph persuasive essay",
        instructions="Take a clear position and support it with evidence.",
        subject="English",
        rubric=ESSAY_RUBRIC,
        max_score=100,
        is_published=True,
        created_by=professor.id,
    )
    db_session.add(assignment)
    db_session.commit()
    db_session.refresh(assignment)
    return assignment


@pytest.fixture
def sample_submission(db_session, student, sample_assignment):
    submission = Submission(
        assignment_id=sample_assignment.id,
        student_id=student.id,
        content="School uniforms should be optional because they limit self-expression.",
        mime_type="text/plain",
        extraction_status=ExtractionStatus.completed,
        submission_metadata={},
    )
    db_session.add(submission)
    db_session.commit()
    db_session.refresh(submission)
    return submission


@pytest.fixture
def generated_feedback(db_session, sample_submission):
    feedback = Feedback(
        submission_id=sample_submission.id,
        status=FeedbackStatus.generated,
        summary="Solid argument.",
        strengths=["Clear position"],
        improvements=["More evidence"],
        criteria_scores=[
            {"criterion": c["name"], "score": 20, "max_points": 25, "comment": ""} for c in ESSAY_RUBRIC
        ],
        score=80,
        ai_model="gpt-test",
    )
    db_session.add(feedback)
    db_session.commit()
    db_session.refresh(feedback)
    return feedback


@pytest.fixture
def other_student_headers(db_session, other_student):
    return auth_headers(db_session, other_student)


@pytest.fixture
def other_professor_headers(db_session, other_professor):
    return auth_headers(db_session, other_professor)
