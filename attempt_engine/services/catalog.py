"""Test Definition Provider: creates, validates and looks up test definitions."""

from datetime import datetime, timezone
from typing import List, Optional

from sqlmodel import Session, select

from attempt_engine.errors import InvalidTestDefinition, TestNotFound
from attempt_engine.models import TestDefinition


def create_test(
    session: Session,
    title: str,
    max_attempts: int = 1,
    allow_retrial: bool = False,
    due_at: Optional[datetime] = None,
    is_timed: bool = False,
    duration_minutes: Optional[int] = None,
    passing_score_percent: Optional[float] = None,
    requires_manual_grading: bool = False,
    score_visible_by_default: bool = True,
) -> TestDefinition:
    """Create a test definition after checking its invariants.

    Raises:
        InvalidTestDefinition: If the attempt budget, timing or passing score is inconsistent
    """
    title = (title or "").strip()
    if not title:
        raise InvalidTestDefinition("Test title cannot be empty")

    if max_attempts < 1:
        raise InvalidTestDefinition("max_attempts must be at least 1")

    # duration_minutes is present iff the test is timed
    if is_timed and duration_minutes is None:
        raise InvalidTestDefinition("Timed tests need duration_minutes")
    if not is_timed and duration_minutes is not None:
        raise InvalidTestDefinition("duration_minutes is only allowed on timed tests")
    if duration_minutes is not None and duration_minutes < 1:
        raise InvalidTestDefinition("duration_minutes must be at least 1")

    if passing_score_percent is not None and not 0 <= passing_score_percent <= 100:
        raise InvalidTestDefinition("passing_score_percent must be between 0 and 100")

    # Stored timestamps are naive UTC
    if due_at is not None and due_at.tzinfo is not None:
        due_at = due_at.astimezone(timezone.utc).replace(tzinfo=None)

    test = TestDefinition(
        title=title,
        due_at=due_at,
        is_timed=is_timed,
        duration_minutes=duration_minutes,
        max_attempts=max_attempts,
        allow_retrial=allow_retrial,
        passing_score_percent=passing_score_percent,
        requires_manual_grading=requires_manual_grading,
        score_visible_by_default=score_visible_by_default,
    )
    session.add(test)
    session.commit()
    session.refresh(test)
    return test


def get_test_definition(session: Session, test_id: int) -> TestDefinition:
    test = session.get(TestDefinition, test_id)
    if not test:
        raise TestNotFound(f"Test with id={test_id} does not exist")
    return test


def list_tests(session: Session) -> List[TestDefinition]:
    return list(session.exec(select(TestDefinition).order_by(TestDefinition.id)).all())
