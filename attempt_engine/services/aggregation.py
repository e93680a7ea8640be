"""Best-attempt selection and cohort statistics."""

from dataclasses import dataclass
from typing import Dict, Iterable, List

from attempt_engine.models import COMPLETE_STATUSES, IN_PROGRESS, AttemptRecord


@dataclass(frozen=True)
class CohortStats:
    count: int
    passed_count: int
    failed_count: int
    average_percentage: float
    in_progress_count: int = 0

    def as_dict(self) -> dict:
        return {
            "count": self.count,
            "passed_count": self.passed_count,
            "failed_count": self.failed_count,
            "average_percentage": self.average_percentage,
            "in_progress_count": self.in_progress_count,
        }


def _rank(attempt: AttemptRecord):
    # Higher is better; a missing percentage or score ranks below any value
    percentage = attempt.percentage if attempt.percentage is not None else float("-inf")
    score = attempt.score if attempt.score is not None else float("-inf")
    return (percentage, score, -attempt.attempt_number)


def best_per_student(attempts: Iterable[AttemptRecord]) -> Dict[int, AttemptRecord]:
    """Pick one authoritative attempt per student.

    Only submitted or graded attempts compete. The highest percentage wins,
    then the highest raw score, then the earliest attempt number.
    """
    best: Dict[int, AttemptRecord] = {}
    for attempt in attempts:
        if attempt.status not in COMPLETE_STATUSES:
            continue
        current = best.get(attempt.student_id)
        if current is None or _rank(attempt) > _rank(current):
            best[attempt.student_id] = attempt
    return best


def cohort_stats(attempts: Iterable[AttemptRecord]) -> CohortStats:
    """Summarise exactly the attempts given; the caller picks best or all."""
    attempts = list(attempts)
    percentages = [a.percentage for a in attempts if a.percentage is not None]
    average = round(sum(percentages) / len(percentages), 2) if percentages else 0.0
    return CohortStats(
        count=len(attempts),
        passed_count=sum(1 for a in attempts if a.is_passed is True),
        failed_count=sum(1 for a in attempts if a.is_passed is False),
        average_percentage=average,
        in_progress_count=sum(1 for a in attempts if a.status == IN_PROGRESS),
    )


OUTCOMES = ("passed", "failed", "in_progress")


def filter_by_outcome(attempts: Iterable[AttemptRecord], outcome: str) -> List[AttemptRecord]:
    """Keep attempts that passed, failed or are still in progress."""
    if outcome == "passed":
        return [a for a in attempts if a.is_passed is True]
    if outcome == "failed":
        return [a for a in attempts if a.is_passed is False]
    if outcome == "in_progress":
        return [a for a in attempts if a.status == IN_PROGRESS]
    raise ValueError(f"Unknown outcome '{outcome}', expected one of {OUTCOMES}")
