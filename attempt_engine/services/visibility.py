"""Teacher-controlled score release and the student-facing result payload."""

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from sqlmodel import Session, select

from attempt_engine.errors import NotGraded
from attempt_engine.models import GRADED, OPEN_STATUSES, SUBMITTED, AttemptRecord
from attempt_engine.services.store import get_attempt

logger = logging.getLogger(__name__)

MESSAGE_NOT_SUBMITTED = "This attempt has not been submitted yet."
MESSAGE_AWAITING_GRADING = "Your answers were submitted and are waiting to be graded."
MESSAGE_AWAITING_RELEASE = (
    "Your score will be available after your teacher reviews and releases it."
)


def _require_graded(attempt: AttemptRecord) -> None:
    if attempt.status != GRADED:
        raise NotGraded(
            f"Attempt {attempt.id} is '{attempt.status}'; only graded attempts can be released or hidden."
        )


def release(session: Session, attempt_id: int, now: datetime) -> AttemptRecord:
    attempt = get_attempt(session, attempt_id)
    _require_graded(attempt)
    attempt.score_visible_to_student = True
    attempt.score_released_at = now
    session.add(attempt)
    session.commit()
    session.refresh(attempt)
    logger.info("Released score of attempt %s", attempt_id)
    return attempt


def hide(session: Session, attempt_id: int) -> AttemptRecord:
    attempt = get_attempt(session, attempt_id)
    _require_graded(attempt)
    attempt.score_visible_to_student = False
    attempt.score_released_at = None
    session.add(attempt)
    session.commit()
    session.refresh(attempt)
    logger.info("Hid score of attempt %s", attempt_id)
    return attempt


def _graded_attempts(
    session: Session, test_id: int, attempt_ids: Optional[Iterable[int]] = None
) -> List[AttemptRecord]:
    stmt = select(AttemptRecord).where(
        (AttemptRecord.test_id == test_id) & (AttemptRecord.status == GRADED)
    )
    if attempt_ids is not None:
        stmt = stmt.where(AttemptRecord.id.in_(list(attempt_ids)))
    return list(session.exec(stmt).all())


def bulk_release(
    session: Session, test_id: int, now: datetime, attempt_ids: Optional[Iterable[int]] = None
) -> int:
    """Release every attempt of the test that is graded right now.

    Attempts graded afterwards keep their own flag; nothing about this call is
    remembered on the test.
    """
    changed = 0
    for attempt in _graded_attempts(session, test_id, attempt_ids):
        if not attempt.score_visible_to_student:
            attempt.score_visible_to_student = True
            attempt.score_released_at = now
            session.add(attempt)
            changed += 1
    session.commit()
    logger.info("Bulk release on test %s changed %s attempts", test_id, changed)
    return changed


def bulk_hide(session: Session, test_id: int, attempt_ids: Optional[Iterable[int]] = None) -> int:
    changed = 0
    for attempt in _graded_attempts(session, test_id, attempt_ids):
        if attempt.score_visible_to_student:
            attempt.score_visible_to_student = False
            attempt.score_released_at = None
            session.add(attempt)
            changed += 1
    session.commit()
    logger.info("Bulk hide on test %s changed %s attempts", test_id, changed)
    return changed


def any_released(session: Session, test_id: int) -> bool:
    stmt = select(AttemptRecord.id).where(
        (AttemptRecord.test_id == test_id)
        & (AttemptRecord.status == GRADED)
        & (AttemptRecord.score_visible_to_student == True)  # noqa: E712
    )
    return session.exec(stmt).first() is not None


def time_spent(attempt: AttemptRecord) -> int:
    if attempt.time_spent_seconds is not None:
        return attempt.time_spent_seconds
    if attempt.submitted_at is not None:
        return max(0, int((attempt.submitted_at - attempt.started_at).total_seconds()))
    return 0


def present_result(attempt: AttemptRecord) -> dict:
    """Build the student-facing result.

    Score fields are only copied into the payload when the attempt is graded
    and released; otherwise the payload is just the time spent and a message.
    """
    if attempt.status == GRADED and attempt.score_visible_to_student:
        return {
            "attempt_id": attempt.id,
            "attempt_number": attempt.attempt_number,
            "status": attempt.status,
            "score": attempt.score,
            "total_points": attempt.total_points,
            "percentage": attempt.percentage,
            "is_passed": attempt.is_passed,
            "feedback": attempt.feedback,
            "time_spent": time_spent(attempt),
            "score_visible": True,
        }

    if attempt.status in OPEN_STATUSES:
        message = MESSAGE_NOT_SUBMITTED
    elif attempt.status == SUBMITTED:
        message = MESSAGE_AWAITING_GRADING
    else:
        message = MESSAGE_AWAITING_RELEASE
    return {"time_spent": time_spent(attempt), "message": message}
