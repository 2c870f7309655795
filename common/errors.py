"""
Domain errors for the feedback backend.

Every error carries a stable machine-readable code and the HTTP status the
service layer maps it to. Core operations raise these; the FastAPI app turns
them into structured JSON responses.
"""

from typing import Optional


class FeedbackServiceError(Exception):
    """Base class for structured application errors."""

    code = "INTERNAL_SERVER_ERROR"
    status_code = 500

    def __init__(self, message: str, *, code: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(FeedbackServiceError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found")
        self.resource = resource


class InvalidTransitionError(FeedbackServiceError):
    code = "INVALID_TRANSITION"
    status_code = 409


class DuplicateEntryError(FeedbackServiceError):
    """Raised when a directory write collides with an existing entry."""

    code = "CONFLICT"
    status_code = 409


class InvalidSurveyTokenError(FeedbackServiceError):
    code = "INVALID_TOKEN"
    status_code = 400

    def __init__(self, message: str = "Invalid or expired survey token"):
        super().__init__(message)


class SurveyAlreadySubmittedError(FeedbackServiceError):
    code = "ALREADY_SUBMITTED"
    status_code = 400

    def __init__(self, message: str = "Survey has already been submitted"):
        super().__init__(message)


class ReferenceCodeExhaustedError(FeedbackServiceError):
    code = "REFERENCE_CODE_EXHAUSTED"
    status_code = 500


class PermissionDeniedError(FeedbackServiceError):
    code = "FORBIDDEN"
    status_code = 403

    def __init__(self, message: str = "Operator privileges required"):
        super().__init__(message)
