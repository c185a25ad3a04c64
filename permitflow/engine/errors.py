"""Exception types raised by the permit engine."""

from typing import Any


class PermitflowError(Exception):
    """Base exception for all engine errors."""


class ApplicationValidationError(PermitflowError):
    """Malformed applicant input at creation."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class NotFoundError(PermitflowError):
    """Unknown application or document id."""


class InvalidCategoryError(PermitflowError):
    """Document category not recognized for this application."""


class InvalidTransitionError(PermitflowError):
    """Illegal status override or mutation on a closed application."""


class AnalysisFailure(PermitflowError):
    """Analysis collaborator errored or timed out.

    Never raised to submit/resubmit callers; absorbed into the document as a
    critical issue.
    """
