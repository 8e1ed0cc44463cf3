"""
Domain errors raised by the services layer.

Each error carries the HTTP status it maps to; gurmania.api registers one
exception handler for the whole family.
"""

from typing import Any, Optional


class GurmaniaError(Exception):
    status_code: int = 400

    def __init__(self, message: str, *, extra: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.extra = extra or {}

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.message, "detail": self.message, **self.extra}


class NotFoundError(GurmaniaError):
    status_code = 404


class ForbiddenError(GurmaniaError):
    status_code = 403


class LessonLockedError(ForbiddenError):
    """Lesson sits in a module gated by an unpassed quiz."""

    def to_payload(self) -> dict[str, Any]:
        return {**super().to_payload(), "locked": True}


class NotEnrolledError(ForbiddenError):
    pass


class InvalidSubmissionError(GurmaniaError):
    status_code = 400


class QuizNotPassedError(GurmaniaError):
    status_code = 400


class ConflictError(GurmaniaError):
    status_code = 409


class CertificateExistsError(ConflictError):
    def __init__(self, message: str, certificate: Any):
        super().__init__(message)
        self.certificate = certificate


class CapacityExceededError(ConflictError):
    pass


class MissingPrerequisitesError(ForbiddenError):
    def __init__(self, message: str, missing_lessons: list[str]):
        super().__init__(message, extra={"missing_lessons": missing_lessons})
        self.missing_lessons = missing_lessons
