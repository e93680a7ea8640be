"""Shared FastAPI dependencies."""

from datetime import datetime


def get_now() -> datetime:
    """Server clock used for every eligibility decision.

    Request bodies never supply this value. Tests override the dependency to
    pin time.
    """
    return datetime.utcnow()
