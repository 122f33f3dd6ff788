"""Error taxonomy for the match analysis pipeline.

Each failure point raises one of these classes, and the class itself says
whether the retry loop may try again. ``classify_error`` only reads that
tag; it never inspects message text.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

_FRAGMENT_MAX_CHARS = 500


class Retryability(str, Enum):
    RETRYABLE = "retryable"
    NON_RETRYABLE = "non_retryable"


class ViolationRule(str, Enum):
    NOT_OBJECT = "not_object"
    MISSING = "missing"
    NOT_NUMERIC = "not_numeric"
    OUT_OF_RANGE = "out_of_range"
    NOT_STRING_LIST = "not_string_list"
    INVALID_ENUM = "invalid_enum"
    EMPTY_TEXT = "empty_text"
    SKILLS_OVERLAP = "skills_overlap"
    RECOMMENDATION_MISMATCH = "recommendation_mismatch"


@dataclass(frozen=True)
class ScoreViolation:
    field: str
    rule: ViolationRule
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class TransportErrorKind(str, Enum):
    TIMEOUT = "timeout"
    CONNECTION = "connection"
    AUTHENTICATION = "authentication"
    RATE_LIMIT = "rate_limit"
    API_STATUS = "api_status"


class MatchAnalysisError(Exception):
    """Base class for every error raised by the match analysis pipeline."""

    retryability = Retryability.NON_RETRYABLE


class InvalidInputError(MatchAnalysisError):
    """Profile or job is missing fields the analysis cannot run without."""

    def __init__(self, message: str, field_errors: Iterable[str] | None = None):
        super().__init__(message)
        self.field_errors = list(field_errors or [])


class ParseError(MatchAnalysisError):
    """The model reply could not be read as a JSON document."""

    def __init__(self, message: str, fragment: str = ""):
        super().__init__(message)
        self.fragment = (fragment or "")[:_FRAGMENT_MAX_CHARS]


class SchemaValidationError(MatchAnalysisError):
    """The parsed reply broke field bounds or cross-field invariants."""

    def __init__(self, violations: Iterable[ScoreViolation]):
        self.violations = list(violations)
        summary = "; ".join(str(v) for v in self.violations) or "unknown violation"
        super().__init__(f"Invalid Claude response structure: {summary}")

    @property
    def fields(self) -> list[str]:
        return [v.field for v in self.violations]

    @property
    def rules(self) -> set[ViolationRule]:
        return {v.rule for v in self.violations}


class TransportError(MatchAnalysisError):
    """Timeout, network, auth or rate-limit failure from the model client."""

    retryability = Retryability.RETRYABLE

    def __init__(self, message: str, kind: TransportErrorKind, status_code: int | None = None):
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code


class MatchAnalysisFailed(MatchAnalysisError):
    """Surfaced by ``analyze_match`` once classification and retries are done."""

    def __init__(self, cause: BaseException):
        super().__init__(f"Failed to analyze match: {cause}")
        self.cause = cause


def classify_error(exc: BaseException) -> Retryability:
    """Return whether the pipeline should retry after ``exc``.

    Errors outside the pipeline taxonomy are treated as non-retryable; they
    indicate a bug rather than a transient provider failure.
    """
    if isinstance(exc, MatchAnalysisError):
        return exc.retryability
    return Retryability.NON_RETRYABLE
