"""Utility functions for sanitization and validation."""

import bleach


def sanitize_feedback(text: str) -> str:
    """Sanitize grader feedback text.

    Strips all HTML so the note can be shown to a student as plain text.
    """
    sanitized = bleach.clean(text, tags=[], strip=True)
    return sanitized.strip()


def validate_score(score: float, total_points: float) -> bool:
    """Validate that a recorded score fits the attempt's total points.

    Raises:
        ValueError: If total_points is not positive or score is out of range
    """
    if total_points <= 0:
        raise ValueError(f"total_points must be positive, got {total_points}")
    if score < 0 or score > total_points:
        raise ValueError(f"Score {score} out of range [0, {total_points}]")

    return True
