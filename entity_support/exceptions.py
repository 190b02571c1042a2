"""
Error types for the support-passage pipeline.

Non-fatal conditions (an entity with no evidence, a relevance model with no
feedback documents, a corrupt line in a rankings file) are reported through
ErrorKind values and logged; only conditions that make a task impossible
are raised.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Kinds of failure recorded for a (query, entity) task."""
    MISSING_EVIDENCE = "missing_evidence"
    EMPTY_FEEDBACK = "empty_feedback"
    MALFORMED_INPUT_LINE = "malformed_input_line"
    BACKEND_UNAVAILABLE = "backend_unavailable"
    TASK_FAILED = "task_failed"


class SupportPassageError(Exception):
    """Base class for errors raised by this package."""


class BackendUnavailableError(SupportPassageError):
    """The search backend could not be opened, searched or read."""


class MalformedLineError(SupportPassageError):
    """A rankings or qrels line is missing expected fields."""

    def __init__(self, message: str, path: str = None, line_number: int = None):
        self.path = path
        self.line_number = line_number
        if path is not None and line_number is not None:
            message = f"{path}:{line_number}: {message}"
        super().__init__(message)
