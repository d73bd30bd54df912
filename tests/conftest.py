import asyncio
from datetime import datetime

import httpx
import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, text

from exam_engine.catalog import create_exam
from exam_engine.database import build_engine, get_session
from exam_engine.deps import Principal, get_current_principal
from exam_engine.main import app
from exam_engine import models  # noqa: F401

# ============================================================================
# IN-MEMORY DATABASE FOR TESTING
# ============================================================================

# StaticPool keeps every session on the same in-memory database
test_engine = build_engine("sqlite:///:memory:", poolclass=StaticPool)

NOW = datetime(2026, 3, 1, 9, 0, 0)


@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    """Create all tables in the test database once per session."""
    SQLModel.metadata.create_all(test_engine)
    yield
    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(autouse=True)
def cleanup_db_between_tests():
    """Clean up test data after each test."""
    yield
    # FK-safe order
    with Session(test_engine) as session:
        session.exec(text("DELETE FROM attemptanswer"))
        session.exec(text("DELETE FROM attempt"))
        session.exec(text("DELETE FROM question"))
        session.exec(text("DELETE FROM exam"))
        session.commit()


@pytest.fixture
def session():
    """Provide a database session for tests."""
    with Session(test_engine) as session:
        yield session


# ============================================================================
# FASTAPI APP & TEST CLIENT
# ============================================================================


class SyncClientWrapper:
    """Blocking facade over httpx.AsyncClient, plus a way to pick the caller."""

    def __init__(self, async_client, loop):
        self.async_client = async_client
        self.loop = loop
        self.principal = None

    def login_as(self, user_id: int, role: str = "student"):
        self.principal = Principal(id=user_id, role=role)
        return self

    def logout(self):
        self.principal = None

    def get(self, *args, **kwargs):
        return self.loop.run_until_complete(self.async_client.get(*args, **kwargs))

    def post(self, *args, **kwargs):
        return self.loop.run_until_complete(self.async_client.post(*args, **kwargs))


@pytest.fixture
def client():
    """httpx client bound to the app, the test database and a settable identity."""

    def override_get_session():
        with Session(test_engine) as session:
            yield session

    loop = asyncio.new_event_loop()
    transport = httpx.ASGITransport(app=app)
    async_client = httpx.AsyncClient(transport=transport, base_url="http://testserver")
    wrapper = SyncClientWrapper(async_client, loop)

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_current_principal] = lambda: wrapper.principal

    yield wrapper

    loop.run_until_complete(async_client.aclose())
    loop.close()
    app.dependency_overrides.clear()


# ============================================================================
# ENTITY FIXTURES
# ============================================================================


def choice(prompt, correct, marks=1, options=("Alpha", "Bravo", "Charlie", "Delta")):
    return {
        "prompt": prompt,
        "question_type": "single_choice",
        "options": list(options),
        "correct_option": correct,
        "marks": marks,
    }


def matching(prompt, pairs, marks=1):
    return {
        "prompt": prompt,
        "question_type": "matching",
        "match_pairs": [{"left": left, "right": right} for left, right in pairs],
        "marks": marks,
    }


def make_exam(session, questions, **kwargs):
    """Create an exam (published by default) and return its id."""
    kwargs.setdefault("title", "Sample Exam")
    kwargs.setdefault("duration_minutes", 30)
    kwargs.setdefault("is_published", True)
    exam = create_exam(session, questions=questions, **kwargs)
    return exam.id


@pytest.fixture
def two_choice_exam(session):
    """Two single-choice questions worth 1 mark each, keys B and D."""
    return make_exam(
        session,
        [choice("First question text", "B"), choice("Second question text", "D")],
        title="Two Choice Exam",
    )


@pytest.fixture
def matching_exam(session):
    """One matching question with 3 pairs worth 5 marks."""
    return make_exam(
        session,
        [matching("Match the capitals", [("France", "Paris"), ("Japan", "Tokyo"), ("Kenya", "Nairobi")], marks=5)],
        title="Matching Exam",
    )
