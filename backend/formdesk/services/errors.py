"""Typed failures raised by the forms services."""

from __future__ import annotations


class FormsError(RuntimeError):
    """Base error for form versioning and submission flows."""


class FormNotFound(FormsError):
    """Raised when a referenced form version does not exist."""


class QuestionNotFound(FormsError):
    """Raised when an answer references a question outside the version."""


class SubmissionNotFound(FormsError):
    """Raised when a referenced submission does not exist."""


class VersionDeleted(FormsError):
    """Raised when editing a soft-deleted form version."""


class WindowNotOpen(FormsError):
    """Raised when submitting before the form's start time."""


class WindowClosed(FormsError):
    """Raised when submitting after the form's end time."""


class SubmissionUnauthorized(FormsError):
    """Raised when a guest submits to a form that is not public."""


class DuplicateSubmission(FormsError):
    """Raised when a user submits twice to a one-submission-per-user form."""


class AlreadyDeleted(FormsError):
    """Raised when soft-deleting a version that is already deleted."""


class NotDeleted(FormsError):
    """Raised when restoring a version that is not deleted."""


class ConcurrencyConflict(FormsError):
    """Raised when a concurrent writer changed the version first."""
