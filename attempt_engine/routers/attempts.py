"""Student-facing endpoints: status, start/resume, submit and result."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel
from sqlmodel import Session

from attempt_engine.database import get_session
from attempt_engine.deps import get_now
from attempt_engine.models import AttemptRecord
from attempt_engine.services.admission import admit_attempt
from attempt_engine.services.catalog import get_test_definition, list_tests
from attempt_engine.services.eligibility import AVAILABLE, COMPLETED, MISSED, evaluate
from attempt_engine.services.grading import submit_attempt
from attempt_engine.services.store import get_attempt, list_attempts
from attempt_engine.services.visibility import present_result

router = APIRouter()


def attempt_to_dict(attempt: AttemptRecord) -> dict:
    """Attempt metadata without any score fields."""
    return {
        "attempt_id": attempt.id,
        "student_id": attempt.student_id,
        "test_id": attempt.test_id,
        "attempt_number": attempt.attempt_number,
        "status": attempt.status,
        "started_at": attempt.started_at,
        "submitted_at": attempt.submitted_at,
    }


@router.get("/students/{student_id}/tests")
def api_student_tests(
    student_id: int,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
):
    """Status of every catalogued test for one student, plus dashboard counts."""
    items = []
    for test in list_tests(session):
        verdict = evaluate(test, list_attempts(session, student_id, test.id), now)
        items.append({"test_id": test.id, "title": test.title, **verdict.as_dict()})

    return {
        "tests": items,
        "available_count": sum(1 for i in items if i["can_start"] or i["can_continue"]),
        "completed_count": sum(1 for i in items if i["status"] == COMPLETED),
        "missed_count": sum(1 for i in items if i["status"] == MISSED),
        "not_started_count": sum(1 for i in items if i["status"] == AVAILABLE),
    }


@router.get("/students/{student_id}/tests/{test_id}/status")
def api_status(
    student_id: int,
    test_id: int,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
):
    test = get_test_definition(session, test_id)
    verdict = evaluate(test, list_attempts(session, student_id, test_id), now)
    return verdict.as_dict()


@router.post("/students/{student_id}/tests/{test_id}/start")
def api_start_or_resume(
    student_id: int,
    test_id: int,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
):
    attempt = admit_attempt(session, student_id, test_id, now)
    return attempt_to_dict(attempt)


class SubmitIn(BaseModel):
    # Auto-graders may pass the computed score with the submission
    score: Optional[float] = None
    total_points: Optional[float] = None


@router.post("/attempts/{attempt_id}/submit")
def api_submit(
    attempt_id: int,
    payload: Optional[SubmitIn] = Body(None),
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
):
    attempt = submit_attempt(
        session,
        attempt_id,
        now,
        score=payload.score if payload else None,
        total_points=payload.total_points if payload else None,
    )
    return {**attempt_to_dict(attempt), "time_spent": attempt.time_spent_seconds}


@router.get("/attempts/{attempt_id}/result")
def api_result(attempt_id: int, session: Session = Depends(get_session)):
    return present_result(get_attempt(session, attempt_id))
