"""Exceptions raised by controllers and external-service adapters."""

from __future__ import annotations


class StudyNavigatorError(Exception):
    """Base error. ``message`` is safe to show to the user verbatim."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class FormValidationError(StudyNavigatorError):
    status_code = 400


class AuthError(StudyNavigatorError):
    status_code = 401


class NotAuthenticated(StudyNavigatorError):
    status_code = 401

    def __init__(self, message: str = "Not signed in") -> None:
        super().__init__(message)


class PlanNotFound(StudyNavigatorError):
    status_code = 404

    def __init__(self, message: str = "Plan not found") -> None:
        super().__init__(message)


class SubmissionInProgress(StudyNavigatorError):
    status_code = 409

    def __init__(self, message: str = "A submission is already in progress") -> None:
        super().__init__(message)


class ConfirmationRequired(StudyNavigatorError):
    status_code = 428


class StoreError(StudyNavigatorError):
    status_code = 502
