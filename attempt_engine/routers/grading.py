"""Teacher-facing endpoints: grade intake, score release and cohort scores."""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query
from pydantic import BaseModel
from sqlmodel import Session

from attempt_engine.database import get_session
from attempt_engine.deps import get_now
from attempt_engine.models import AttemptRecord
from attempt_engine.services import visibility
from attempt_engine.services.aggregation import best_per_student, cohort_stats, filter_by_outcome
from attempt_engine.services.catalog import get_test_definition
from attempt_engine.services.grading import record_grade
from attempt_engine.services.store import list_test_attempts

router = APIRouter(prefix="/grading")


def graded_attempt_to_dict(attempt: AttemptRecord) -> dict:
    """Full attempt view for teachers, score fields included."""
    return {
        "attempt_id": attempt.id,
        "student_id": attempt.student_id,
        "test_id": attempt.test_id,
        "attempt_number": attempt.attempt_number,
        "status": attempt.status,
        "score": attempt.score,
        "total_points": attempt.total_points,
        "percentage": attempt.percentage,
        "is_passed": attempt.is_passed,
        "graded_at": attempt.graded_at,
        "score_visible_to_student": attempt.score_visible_to_student,
        "score_released_at": attempt.score_released_at,
    }


class GradeIn(BaseModel):
    score: float
    total_points: float
    percentage: Optional[float] = None
    feedback: Optional[str] = None


class AttemptIdsIn(BaseModel):
    attempt_ids: Optional[List[int]] = None


@router.post("/attempts/{attempt_id}/grade")
def api_grade(
    attempt_id: int,
    payload: GradeIn = Body(...),
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
):
    attempt = record_grade(
        session,
        attempt_id,
        score=payload.score,
        total_points=payload.total_points,
        now=now,
        percentage=payload.percentage,
        feedback=payload.feedback,
    )
    return graded_attempt_to_dict(attempt)


@router.get("/tests/{test_id}/scores")
def api_cohort_scores(
    test_id: int,
    mode: str = Query("best", pattern="^(best|all)$"),
    status: Optional[str] = Query(None, pattern="^(passed|failed|in_progress)$"),
    session: Session = Depends(get_session),
):
    """Best attempt per student and statistics over best or all attempts.

    With `status`, an `attempts` list holds the rows that passed, failed or are
    still in progress. Open attempts never compete for best, so
    `status=in_progress` always lists from all attempts. Stats stay unfiltered.
    """
    get_test_definition(session, test_id)
    attempts = list_test_attempts(session, test_id)
    best = best_per_student(attempts)
    stats = cohort_stats(best.values() if mode == "best" else attempts)
    response = {
        "test_id": test_id,
        "mode": mode,
        "best": {str(student_id): graded_attempt_to_dict(a) for student_id, a in best.items()},
        "stats": stats.as_dict(),
        "any_released": visibility.any_released(session, test_id),
    }
    if status is not None:
        rows = attempts if mode == "all" or status == "in_progress" else list(best.values())
        response["status"] = status
        response["attempts"] = [graded_attempt_to_dict(a) for a in filter_by_outcome(rows, status)]
    return response


@router.post("/attempts/{attempt_id}/release")
def api_release(
    attempt_id: int,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
):
    attempt = visibility.release(session, attempt_id, now)
    return {**graded_attempt_to_dict(attempt), "message": "Score released to student"}


@router.post("/attempts/{attempt_id}/hide")
def api_hide(attempt_id: int, session: Session = Depends(get_session)):
    attempt = visibility.hide(session, attempt_id)
    return {**graded_attempt_to_dict(attempt), "message": "Score hidden from student"}


@router.post("/tests/{test_id}/release-scores")
def api_bulk_release(
    test_id: int,
    payload: Optional[AttemptIdsIn] = Body(None),
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
):
    get_test_definition(session, test_id)
    attempt_ids = payload.attempt_ids if payload else None
    changed = visibility.bulk_release(session, test_id, now, attempt_ids)
    return {"test_id": test_id, "released": changed}


@router.post("/tests/{test_id}/hide-scores")
def api_bulk_hide(
    test_id: int,
    payload: Optional[AttemptIdsIn] = Body(None),
    session: Session = Depends(get_session),
):
    get_test_definition(session, test_id)
    attempt_ids = payload.attempt_ids if payload else None
    changed = visibility.bulk_hide(session, test_id, attempt_ids)
    return {"test_id": test_id, "hidden": changed}
