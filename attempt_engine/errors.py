"""Typed failures raised by the engine services.

Every error carries a stable ``code`` and an HTTP ``status_code`` so the API
layer can map it to a response without inspecting the message.
"""

from typing import Optional


class AttemptEngineError(Exception):
    code = "attempt_engine_error"
    status_code = 400
    default_message = "Request could not be processed."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AlreadyInProgress(AttemptEngineError):
    code = "already_in_progress"
    status_code = 409
    default_message = "Another attempt for this test is already being started."


class AttemptLimitExceeded(AttemptEngineError):
    code = "attempt_limit_exceeded"
    status_code = 409
    default_message = "No attempts remaining for this test."


class PastDue(AttemptEngineError):
    code = "past_due"
    status_code = 409
    default_message = "The due date for this test has passed."


class NotGraded(AttemptEngineError):
    code = "not_graded"
    status_code = 409
    default_message = "This attempt has not been graded yet, so its score visibility cannot change."


class AttemptClosed(AttemptEngineError):
    code = "attempt_closed"
    status_code = 409
    default_message = "This attempt is not in a state that allows the requested change."


class ConflictError(AttemptEngineError):
    """Raised by the store when an insert violates the attempt-number constraint."""

    code = "conflict"
    status_code = 409
    default_message = "Attempt number already taken."


class TestNotFound(AttemptEngineError):
    code = "test_not_found"
    status_code = 404
    default_message = "Test not found."


class AttemptNotFound(AttemptEngineError):
    code = "attempt_not_found"
    status_code = 404
    default_message = "Attempt not found."


class InvalidTestDefinition(AttemptEngineError):
    code = "invalid_test_definition"
    status_code = 422


class InvalidGrade(AttemptEngineError):
    code = "invalid_grade"
    status_code = 422
