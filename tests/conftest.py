import asyncio
import sys
from datetime import datetime, timedelta
from pathlib import Path

import httpx
import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, text


def _ensure_app_on_path():
    repo_root = Path(__file__).resolve().parent.parent
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))
    return repo_root


_ensure_app_on_path()

from attempt_engine.database import get_session  # noqa: E402
from attempt_engine.deps import get_now  # noqa: E402
from attempt_engine.main import app  # noqa: E402
from attempt_engine.models import AttemptRecord, TestDefinition  # noqa: E402

# ============================================================================
# IN-MEMORY DATABASE FOR TESTING
# ============================================================================

# StaticPool makes every connection share the same in-memory database
test_engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Fixed server time for every test
NOW = datetime(2026, 3, 2, 9, 0, 0)


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
    with Session(test_engine) as session:
        session.exec(text("DELETE FROM attemptrecord"))
        session.exec(text("DELETE FROM testdefinition"))
        session.commit()


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def session():
    """Provide a database session for tests."""
    with Session(test_engine) as session:
        yield session


# ============================================================================
# FASTAPI APP & TEST CLIENT
# ============================================================================


class SyncClientWrapper:
    """Run httpx.AsyncClient calls to completion on a private event loop."""

    def __init__(self, async_client, loop):
        self.async_client = async_client
        self.loop = loop

    def get(self, *args, **kwargs):
        return self.loop.run_until_complete(self.async_client.get(*args, **kwargs))

    def post(self, *args, **kwargs):
        return self.loop.run_until_complete(self.async_client.post(*args, **kwargs))


@pytest.fixture
def client():
    """Test client bound to the in-memory database and the fixed clock."""

    def override_get_session():
        with Session(test_engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_now] = lambda: NOW

    loop = asyncio.new_event_loop()
    transport = httpx.ASGITransport(app=app)
    async_client = httpx.AsyncClient(transport=transport, base_url="http://testserver")

    yield SyncClientWrapper(async_client, loop)

    loop.run_until_complete(async_client.aclose())
    loop.close()
    app.dependency_overrides.clear()


# ============================================================================
# ENTITY FIXTURES
# ============================================================================


def make_test(session, **overrides) -> TestDefinition:
    """Persist a test definition with sensible defaults."""
    fields = dict(
        title="Algebra Quiz",
        due_at=NOW + timedelta(days=3),
        max_attempts=2,
        allow_retrial=True,
        passing_score_percent=50.0,
        requires_manual_grading=False,
        score_visible_by_default=False,
    )
    fields.update(overrides)
    test = TestDefinition(**fields)
    session.add(test)
    session.commit()
    session.refresh(test)
    return test


def make_attempt(session, test, student_id=1, attempt_number=1, **overrides) -> AttemptRecord:
    """Persist an attempt row directly, bypassing admission."""
    fields = dict(
        student_id=student_id,
        test_id=test.id,
        attempt_number=attempt_number,
        status="in_progress",
        started_at=NOW - timedelta(hours=1),
    )
    fields.update(overrides)
    attempt = AttemptRecord(**fields)
    session.add(attempt)
    session.commit()
    session.refresh(attempt)
    return attempt


def graded_fields(score, total_points=50.0, percentage=None, is_passed=None, visible=False):
    if percentage is None:
        percentage = round(score / total_points * 100, 2)
    return dict(
        status="graded",
        submitted_at=NOW - timedelta(minutes=30),
        time_spent_seconds=1800,
        score=score,
        total_points=total_points,
        percentage=percentage,
        is_passed=is_passed,
        graded_at=NOW - timedelta(minutes=10),
        score_visible_to_student=visible,
    )


@pytest.fixture
def open_test(session):
    """Retakeable test due in three days."""
    return make_test(session)


@pytest.fixture
def overdue_test(session):
    return make_test(session, title="Overdue Essay", due_at=NOW - timedelta(days=1))


@pytest.fixture
def undated_test(session):
    return make_test(session, title="Practice Bank", due_at=None, max_attempts=3)


@pytest.fixture
def graded_attempt(session, open_test):
    """Graded attempt whose score has not been released."""
    return make_attempt(session, open_test, **graded_fields(40.0, is_passed=True))
