"""SQLModel models for the test-attempt engine."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel

# Timestamps are naive UTC, stored in plain DateTime columns

# Stored attempt states
PENDING = "pending"
IN_PROGRESS = "in_progress"
SUBMITTED = "submitted"
GRADED = "graded"

OPEN_STATUSES = (PENDING, IN_PROGRESS)
COMPLETE_STATUSES = (SUBMITTED, GRADED)


class TestDefinition(SQLModel, table=True):
    """Test metadata supplied by the catalog. The engine only reads it."""

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    due_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    is_timed: bool = Field(default=False)
    duration_minutes: Optional[int] = None  # set iff is_timed
    max_attempts: int = Field(default=1)
    allow_retrial: bool = Field(default=False)
    passing_score_percent: Optional[float] = None
    requires_manual_grading: bool = Field(default=False)
    score_visible_by_default: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime)


class AttemptRecord(SQLModel, table=True):
    """One attempt by a student at a test. Rows are never deleted."""

    __table_args__ = (
        UniqueConstraint(
            "student_id", "test_id", "attempt_number", name="uq_attempt_student_test_number"
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    student_id: int = Field(index=True)
    test_id: int = Field(foreign_key="testdefinition.id", index=True)
    attempt_number: int
    status: str = Field(default=IN_PROGRESS)  # pending | in_progress | submitted | graded
    started_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime)
    submitted_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    time_spent_seconds: Optional[int] = None

    # Filled in by the grader
    score: Optional[float] = None
    total_points: Optional[float] = None
    percentage: Optional[float] = None
    is_passed: Optional[bool] = None
    feedback: Optional[str] = None
    graded_at: Optional[datetime] = Field(default=None, sa_type=DateTime)

    # Teacher-controlled, independent of status
    score_visible_to_student: bool = Field(default=False)
    score_released_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
