"""Submission and grade intake for attempts.

A grade is only stored on a submitted or graded attempt. Score checks run
before anything is written, so a rejected score leaves the attempt as it was.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlmodel import Session

from attempt_engine.errors import AttemptClosed, InvalidGrade
from attempt_engine.models import COMPLETE_STATUSES, GRADED, OPEN_STATUSES, SUBMITTED, AttemptRecord
from attempt_engine.services.catalog import get_test_definition
from attempt_engine.services.store import get_attempt
from attempt_engine.utils import sanitize_feedback, validate_score

logger = logging.getLogger(__name__)


def _checked_percentage(
    attempt_id: int, score: float, total_points: float, percentage: Optional[float] = None
) -> float:
    """Validate a score and return the percentage to store.

    Raises:
        InvalidGrade: If the score does not fit total_points or the percentage is out of range
    """
    try:
        validate_score(score, total_points)
    except ValueError as e:
        raise InvalidGrade(f"Attempt {attempt_id}: {str(e)}")

    if percentage is None:
        return round(score / total_points * 100, 2)
    if not 0 <= percentage <= 100:
        raise InvalidGrade(f"Attempt {attempt_id}: percentage {percentage} out of range [0, 100]")
    return percentage


def submit_attempt(
    session: Session,
    attempt_id: int,
    now: datetime,
    score: Optional[float] = None,
    total_points: Optional[float] = None,
) -> AttemptRecord:
    """Close an open attempt.

    When the test is auto-graded and the caller already has the score, the
    attempt is graded in the same call.

    Raises:
        AttemptClosed: If the attempt was already submitted or graded
        InvalidGrade: If the auto-score is invalid; the attempt stays open
    """
    attempt = get_attempt(session, attempt_id)
    if attempt.status not in OPEN_STATUSES:
        raise AttemptClosed(f"Attempt {attempt_id} is already '{attempt.status}'")

    test = get_test_definition(session, attempt.test_id)
    auto_grade = not test.requires_manual_grading and score is not None and total_points is not None
    if auto_grade:
        _checked_percentage(attempt_id, score, total_points)

    attempt.status = SUBMITTED
    attempt.submitted_at = now
    attempt.time_spent_seconds = max(0, int((now - attempt.started_at).total_seconds()))
    session.add(attempt)
    session.commit()
    session.refresh(attempt)
    logger.info("Attempt %s submitted after %ss", attempt_id, attempt.time_spent_seconds)

    if auto_grade:
        attempt = record_grade(session, attempt_id, score, total_points, now)
    return attempt


def record_grade(
    session: Session,
    attempt_id: int,
    score: float,
    total_points: float,
    now: datetime,
    percentage: Optional[float] = None,
    feedback: Optional[str] = None,
) -> AttemptRecord:
    """Store a score supplied by the grader and mark the attempt graded.

    Re-grading a graded attempt overwrites the score but keeps its current
    visibility flag.

    Raises:
        AttemptClosed: If the attempt has not been submitted yet
        InvalidGrade: If the score does not fit total_points
    """
    attempt = get_attempt(session, attempt_id)
    if attempt.status not in COMPLETE_STATUSES:
        raise AttemptClosed(f"Attempt {attempt_id} must be submitted before it can be graded")

    percentage = _checked_percentage(attempt_id, score, total_points, percentage)

    test = get_test_definition(session, attempt.test_id)
    first_grading = attempt.status != GRADED

    attempt.score = score
    attempt.total_points = total_points
    attempt.percentage = percentage
    if test.passing_score_percent is None:
        attempt.is_passed = None
    else:
        attempt.is_passed = percentage >= test.passing_score_percent
    if feedback:
        attempt.feedback = sanitize_feedback(feedback)
    attempt.status = GRADED
    attempt.graded_at = now
    if first_grading:
        attempt.score_visible_to_student = test.score_visible_by_default
        attempt.score_released_at = now if test.score_visible_by_default else None

    session.add(attempt)
    session.commit()
    session.refresh(attempt)
    logger.info("Attempt %s graded: %s/%s (%s%%)", attempt_id, score, total_points, percentage)
    return attempt
