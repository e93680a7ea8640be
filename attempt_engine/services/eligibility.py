"""Status and start/continue permission for one (student, test) pair.

Everything here is pure: the evaluator reads a test definition, the student's
attempt history and the server clock, and never writes to an attempt. An
open attempt that is past the due date is reported as missed; moving it to
``submitted`` is left to whatever sweep runs outside the engine.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Sequence

from attempt_engine.models import COMPLETE_STATUSES, OPEN_STATUSES, AttemptRecord, TestDefinition
from attempt_engine.services.store import latest_attempt

AVAILABLE = "available"
IN_PROGRESS = "in_progress"
COMPLETED = "completed"
MISSED = "missed"


@dataclass(frozen=True)
class Eligibility:
    status: str
    can_start: bool
    can_continue: bool
    is_missed: bool
    attempts_used: int = 0
    attempts_remaining: int = 0
    latest_attempt_id: Optional[int] = None
    # Informational countdown for timed tests; never used to gate anything
    time_remaining_seconds: Optional[int] = None

    def as_dict(self) -> dict:
        return {
            "status": self.status,
            "can_start": self.can_start,
            "can_continue": self.can_continue,
            "is_missed": self.is_missed,
            "attempts_used": self.attempts_used,
            "attempts_remaining": self.attempts_remaining,
            "latest_attempt_id": self.latest_attempt_id,
            "time_remaining_seconds": self.time_remaining_seconds,
        }


def is_past_due(test: TestDefinition, now: datetime) -> bool:
    return test.due_at is not None and now > test.due_at


def _time_remaining(test: TestDefinition, attempt: AttemptRecord, now: datetime) -> Optional[int]:
    if not test.is_timed or test.duration_minutes is None:
        return None
    deadline = attempt.started_at + timedelta(minutes=test.duration_minutes)
    if test.due_at is not None and test.due_at < deadline:
        deadline = test.due_at
    return max(0, int((deadline - now).total_seconds()))


def evaluate(test: TestDefinition, attempts: Sequence[AttemptRecord], now: datetime) -> Eligibility:
    """Derive the current status of a student's attempts at ``test``.

    Args:
        test: The test definition
        attempts: All of one student's attempts at the test, in any order
        now: Server time

    Returns:
        Eligibility describing status, start/continue permission and whether
        the test counts as missed
    """
    past_due = is_past_due(test, now)
    latest = latest_attempt(list(attempts))
    used = latest.attempt_number if latest else 0
    remaining = max(0, test.max_attempts - used)

    if latest is None:
        return Eligibility(
            status=MISSED if past_due else AVAILABLE,
            can_start=not past_due,
            can_continue=False,
            is_missed=past_due,
            attempts_used=0,
            attempts_remaining=remaining,
        )

    if latest.status in OPEN_STATUSES:
        # Stored status may still say in_progress after the due date; treat it as missed
        return Eligibility(
            status=MISSED if past_due else IN_PROGRESS,
            can_start=False,
            can_continue=not past_due,
            is_missed=past_due,
            attempts_used=used,
            attempts_remaining=remaining,
            latest_attempt_id=latest.id,
            time_remaining_seconds=None if past_due else _time_remaining(test, latest, now),
        )

    if latest.status in COMPLETE_STATUSES:
        can_retake = test.allow_retrial and latest.attempt_number < test.max_attempts and not past_due
        return Eligibility(
            status=COMPLETED,
            can_start=can_retake,
            can_continue=False,
            is_missed=False,
            attempts_used=used,
            attempts_remaining=remaining if test.allow_retrial else 0,
            latest_attempt_id=latest.id,
        )

    raise ValueError(f"Unknown attempt status '{latest.status}' on attempt {latest.id}")
