"""Minimal test catalog endpoints so definitions can be created and read."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel
from sqlmodel import Session

from attempt_engine.database import get_session
from attempt_engine.models import TestDefinition
from attempt_engine.services.catalog import create_test, get_test_definition

router = APIRouter()


class CreateTestIn(BaseModel):
    title: str
    max_attempts: int = 1
    allow_retrial: bool = False
    due_at: Optional[datetime] = None
    is_timed: bool = False
    duration_minutes: Optional[int] = None
    passing_score_percent: Optional[float] = None
    requires_manual_grading: bool = False
    score_visible_by_default: bool = True


def serialize_test(test: TestDefinition) -> dict:
    return {
        "test_id": test.id,
        "title": test.title,
        "due_at": test.due_at,
        "is_timed": test.is_timed,
        "duration_minutes": test.duration_minutes,
        "max_attempts": test.max_attempts,
        "allow_retrial": test.allow_retrial,
        "passing_score_percent": test.passing_score_percent,
        "requires_manual_grading": test.requires_manual_grading,
        "score_visible_by_default": test.score_visible_by_default,
    }


@router.post("/tests", status_code=201)
def api_create_test(payload: CreateTestIn = Body(...), session: Session = Depends(get_session)):
    test = create_test(
        session,
        title=payload.title,
        max_attempts=payload.max_attempts,
        allow_retrial=payload.allow_retrial,
        due_at=payload.due_at,
        is_timed=payload.is_timed,
        duration_minutes=payload.duration_minutes,
        passing_score_percent=payload.passing_score_percent,
        requires_manual_grading=payload.requires_manual_grading,
        score_visible_by_default=payload.score_visible_by_default,
    )
    return serialize_test(test)


@router.get("/tests/{test_id}")
def api_get_test(test_id: int, session: Session = Depends(get_session)):
    return serialize_test(get_test_definition(session, test_id))
