"""Start-or-resume for test attempts.

Admission re-reads the committed attempts, re-runs the evaluator and then
inserts ``previous max + 1``. The insert is optimistic: the unique constraint
on (student_id, test_id, attempt_number) rejects a second writer, which then
re-evaluates and usually ends up resuming the winner's attempt.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlmodel import Session

from attempt_engine import config
from attempt_engine.errors import AlreadyInProgress, AttemptLimitExceeded, ConflictError, PastDue
from attempt_engine.models import IN_PROGRESS, OPEN_STATUSES, PENDING, AttemptRecord
from attempt_engine.services.catalog import get_test_definition
from attempt_engine.services.eligibility import evaluate, is_past_due
from attempt_engine.services.store import (
    insert_attempt,
    latest_attempt,
    list_attempts,
    max_attempt_number,
    update_attempt,
)

logger = logging.getLogger(__name__)


def admit_attempt(
    session: Session,
    student_id: int,
    test_id: int,
    now: datetime,
    max_retries: Optional[int] = None,
) -> AttemptRecord:
    """Return the student's open attempt or create the next one.

    Raises:
        TestNotFound: If the test does not exist
        PastDue: If the due date has passed
        AttemptLimitExceeded: If no retake is allowed
        AlreadyInProgress: If a concurrent admission kept winning the insert race
    """
    if max_retries is None:
        max_retries = config.ADMISSION_MAX_RETRIES

    test = get_test_definition(session, test_id)

    for round_no in range(max_retries + 1):
        attempts = list_attempts(session, student_id, test_id)
        verdict = evaluate(test, attempts, now)
        latest = latest_attempt(attempts)

        if latest is not None and latest.status in OPEN_STATUSES:
            if not verdict.can_continue:
                raise PastDue("The due date passed before this attempt was submitted.")
            if latest.status == PENDING:
                latest = update_attempt(session, latest.id, status=IN_PROGRESS, started_at=now)
                logger.info("Promoted pending attempt %s to in_progress", latest.id)
            else:
                logger.info(
                    "Resuming attempt %s (student=%s test=%s)", latest.id, student_id, test_id
                )
            return latest

        if not verdict.can_start:
            if is_past_due(test, now):
                raise PastDue()
            raise AttemptLimitExceeded()

        record = AttemptRecord(
            student_id=student_id,
            test_id=test_id,
            attempt_number=max_attempt_number(attempts) + 1,
            status=IN_PROGRESS,
            started_at=now,
        )
        try:
            record = insert_attempt(session, record)
        except ConflictError:
            logger.warning(
                "Lost insert race for attempt %s (student=%s test=%s), round %s",
                record.attempt_number,
                student_id,
                test_id,
                round_no + 1,
            )
            continue

        logger.info(
            "Created attempt %s #%s (student=%s test=%s)",
            record.id,
            record.attempt_number,
            student_id,
            test_id,
        )
        return record

    raise AlreadyInProgress()
