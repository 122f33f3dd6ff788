"""Structural and cross-field validation of Claude match payloads.

Validation runs in two stages. ``check_match_payload`` collects every
violation it can find and never raises. ``validate_match_payload`` raises
``SchemaValidationError`` when that list is non-empty and otherwise returns
the normalized payload: scores clamped into [0, 100] and rounded half-up.

Raw scores slightly outside the range (e.g. 100.4) are within
``score_tolerance`` and get clamped; anything further out is rejected.
Only the strong_apply and skip tiers are tied to score thresholds. The
apply/maybe bands are guidance for the model, not enforced here.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, List

from .errors import SchemaValidationError, ScoreViolation, ViolationRule
from .schemas import MAYBE_MIN_SCORE, STRONG_APPLY_MIN_SCORE, Recommendation

SCORE_MIN = 0
SCORE_MAX = 100

SCORE_FIELDS = (
    "overall_score",
    "skills_match",
    "experience_match",
    "location_match",
    "company_match",
    "requirements_match",
)
SKILL_LIST_FIELDS = ("matching_skills", "missing_skills")

_RECOMMENDATION_VALUES = tuple(r.value for r in Recommendation)


@dataclass(frozen=True)
class ValidatedMatchPayload:
    overall_score: int
    skills_match: int
    experience_match: int
    location_match: int
    company_match: int
    requirements_match: int
    matching_skills: List[str]
    missing_skills: List[str]
    recommendation: Recommendation
    details: str

    def scores(self) -> Dict[str, int]:
        return {field: getattr(self, field) for field in SCORE_FIELDS}


def normalize_score(value: float) -> int:
    """Clamp to [0, 100] and round half-up to an integer."""
    rounded = math.floor(float(value) + 0.5)
    return int(max(SCORE_MIN, min(SCORE_MAX, rounded)))


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    if isinstance(value, int):
        # Arbitrarily large ints are left to the range check.
        return True
    return math.isfinite(value)


def _describe(value: Any) -> str:
    if isinstance(value, int) and not isinstance(value, bool) and value.bit_length() > 64:
        return "an oversized integer"
    return repr(value)


def _check_score(payload: Dict[str, Any], field: str, tolerance: float) -> List[ScoreViolation]:
    if field not in payload or payload[field] is None:
        return [ScoreViolation(field, ViolationRule.MISSING, "score is required")]
    value = payload[field]
    if not _is_number(value):
        return [ScoreViolation(field, ViolationRule.NOT_NUMERIC, f"score must be a finite number (got {_describe(value)})")]
    if value < SCORE_MIN - tolerance or value > SCORE_MAX + tolerance:
        return [ScoreViolation(field, ViolationRule.OUT_OF_RANGE, f"score must be between 0 and 100 (got {_describe(value)})")]
    return []


def _check_string_list(payload: Dict[str, Any], field: str) -> List[ScoreViolation]:
    if field not in payload or payload[field] is None:
        return [ScoreViolation(field, ViolationRule.MISSING, "list of strings is required")]
    value = payload[field]
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        return [ScoreViolation(field, ViolationRule.NOT_STRING_LIST, "must be an array of strings")]
    return []


def _check_recommendation(payload: Dict[str, Any]) -> List[ScoreViolation]:
    value = payload.get("recommendation")
    if value is None:
        return [ScoreViolation("recommendation", ViolationRule.MISSING, "recommendation is required")]
    if value not in _RECOMMENDATION_VALUES:
        return [
            ScoreViolation(
                "recommendation",
                ViolationRule.INVALID_ENUM,
                f"must be one of {', '.join(_RECOMMENDATION_VALUES)} (got {value!r})",
            )
        ]
    return []


def _check_details(payload: Dict[str, Any]) -> List[ScoreViolation]:
    value = payload.get("details")
    if value is None:
        return [ScoreViolation("details", ViolationRule.MISSING, "details text is required")]
    if not isinstance(value, str) or not value.strip():
        return [ScoreViolation("details", ViolationRule.EMPTY_TEXT, "details must be a non-empty string")]
    return []


def _check_skills_disjoint(matching: List[str], missing: List[str]) -> List[ScoreViolation]:
    missing_set = set(missing)
    overlap = [skill for skill in dict.fromkeys(matching) if skill in missing_set]
    if not overlap:
        return []
    return [
        ScoreViolation(
            "missing_skills",
            ViolationRule.SKILLS_OVERLAP,
            f"matching_skills and missing_skills cannot overlap ({', '.join(overlap)})",
        )
    ]


def _check_recommendation_consistency(recommendation: Recommendation, overall_score: int) -> List[ScoreViolation]:
    if recommendation == Recommendation.STRONG_APPLY and overall_score < STRONG_APPLY_MIN_SCORE:
        return [
            ScoreViolation(
                "recommendation",
                ViolationRule.RECOMMENDATION_MISMATCH,
                f"strong_apply requires overall_score >= {STRONG_APPLY_MIN_SCORE} (got {overall_score})",
            )
        ]
    if recommendation == Recommendation.SKIP and overall_score >= MAYBE_MIN_SCORE:
        return [
            ScoreViolation(
                "recommendation",
                ViolationRule.RECOMMENDATION_MISMATCH,
                f"skip requires overall_score < {MAYBE_MIN_SCORE} (got {overall_score})",
            )
        ]
    return []


def check_match_payload(payload: Any, *, score_tolerance: float = 1.0) -> List[ScoreViolation]:
    """Return every structural and invariant violation found in ``payload``."""
    if not isinstance(payload, dict):
        return [ScoreViolation("$", ViolationRule.NOT_OBJECT, "Claude response was not a JSON object")]

    violations: List[ScoreViolation] = []
    for field in SCORE_FIELDS:
        violations.extend(_check_score(payload, field, score_tolerance))
    for field in SKILL_LIST_FIELDS:
        violations.extend(_check_string_list(payload, field))
    violations.extend(_check_recommendation(payload))
    violations.extend(_check_details(payload))

    bad_fields = {v.field for v in violations}

    if not bad_fields.intersection(SKILL_LIST_FIELDS):
        violations.extend(_check_skills_disjoint(payload["matching_skills"], payload["missing_skills"]))

    # Tier thresholds are checked against the normalized score, which is the
    # value callers will see.
    if "overall_score" not in bad_fields and "recommendation" not in bad_fields:
        violations.extend(
            _check_recommendation_consistency(
                Recommendation(payload["recommendation"]),
                normalize_score(payload["overall_score"]),
            )
        )
    return violations


def validate_match_payload(payload: Any, *, score_tolerance: float = 1.0) -> ValidatedMatchPayload:
    violations = check_match_payload(payload, score_tolerance=score_tolerance)
    if violations:
        raise SchemaValidationError(violations)

    return ValidatedMatchPayload(
        overall_score=normalize_score(payload["overall_score"]),
        skills_match=normalize_score(payload["skills_match"]),
        experience_match=normalize_score(payload["experience_match"]),
        location_match=normalize_score(payload["location_match"]),
        company_match=normalize_score(payload["company_match"]),
        requirements_match=normalize_score(payload["requirements_match"]),
        matching_skills=list(payload["matching_skills"]),
        missing_skills=list(payload["missing_skills"]),
        recommendation=Recommendation(payload["recommendation"]),
        details=payload["details"].strip(),
    )
