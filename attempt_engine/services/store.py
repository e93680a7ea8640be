"""Attempt persistence on top of SQLModel.

These helpers are the only code that touches the ``attemptrecord`` table.
"""

from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from attempt_engine.errors import AttemptNotFound, ConflictError
from attempt_engine.models import AttemptRecord


def list_attempts(session: Session, student_id: int, test_id: int) -> List[AttemptRecord]:
    """Return a student's attempts at a test ordered by attempt number."""
    stmt = (
        select(AttemptRecord)
        .where((AttemptRecord.student_id == student_id) & (AttemptRecord.test_id == test_id))
        .order_by(AttemptRecord.attempt_number)
    )
    return list(session.exec(stmt).all())


def list_test_attempts(session: Session, test_id: int) -> List[AttemptRecord]:
    stmt = (
        select(AttemptRecord)
        .where(AttemptRecord.test_id == test_id)
        .order_by(AttemptRecord.student_id, AttemptRecord.attempt_number)
    )
    return list(session.exec(stmt).all())


def get_attempt(session: Session, attempt_id: int) -> AttemptRecord:
    attempt = session.get(AttemptRecord, attempt_id)
    if not attempt:
        raise AttemptNotFound(f"Attempt with id={attempt_id} does not exist")
    return attempt


def insert_attempt(session: Session, record: AttemptRecord) -> AttemptRecord:
    """Insert a new attempt row.

    Raises:
        ConflictError: If (student_id, test_id, attempt_number) is already taken.
    """
    session.add(record)
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise ConflictError(
            f"Attempt {record.attempt_number} already exists for "
            f"student={record.student_id} test={record.test_id}"
        ) from exc
    session.refresh(record)
    return record


def update_attempt(session: Session, attempt_id: int, **fields) -> AttemptRecord:
    """Apply ``fields`` to an attempt and commit."""
    attempt = get_attempt(session, attempt_id)
    for name, value in fields.items():
        if not hasattr(attempt, name):
            raise AttributeError(f"AttemptRecord has no field '{name}'")
        setattr(attempt, name, value)
    session.add(attempt)
    session.commit()
    session.refresh(attempt)
    return attempt


def max_attempt_number(attempts: List[AttemptRecord]) -> int:
    return max((a.attempt_number for a in attempts), default=0)


def latest_attempt(attempts: List[AttemptRecord]) -> Optional[AttemptRecord]:
    """Pick the attempt with the highest attempt number, whatever the input order."""
    if not attempts:
        return None
    return max(attempts, key=lambda a: a.attempt_number)
