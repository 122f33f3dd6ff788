"""Pydantic models for match analysis inputs and results."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

STRONG_APPLY_MIN_SCORE = 80
APPLY_MIN_SCORE = 60
MAYBE_MIN_SCORE = 40


class Recommendation(str, Enum):
    STRONG_APPLY = "strong_apply"
    APPLY = "apply"
    MAYBE = "maybe"
    SKIP = "skip"


class VisaStatus(str, Enum):
    HAS_PERMIT = "has_permit"
    NEEDS_SPONSORSHIP = "needs_sponsorship"
    EU_CITIZEN = "eu_citizen"


class LanguageProficiency(str, Enum):
    NATIVE = "native"
    FLUENT = "fluent"
    INTERMEDIATE = "intermediate"
    BASIC = "basic"


class CompanySizePreference(str, Enum):
    STARTUP = "startup"
    SCALEUP = "scaleup"
    CORPORATE = "corporate"
    ANY = "any"


class RemotePreference(str, Enum):
    OFFICE = "office"
    HYBRID = "hybrid"
    REMOTE = "remote"
    FLEXIBLE = "flexible"


class RemoteType(str, Enum):
    OFFICE = "office"
    HYBRID = "hybrid"
    REMOTE = "remote"


_RECOMMENDATION_TEXT = {
    Recommendation.STRONG_APPLY: "Strong Apply - Excellent match!",
    Recommendation.APPLY: "Apply - Good match, recommended",
    Recommendation.MAYBE: "Maybe - Moderate match, consider applying",
    Recommendation.SKIP: "Skip - Weak match, not recommended",
}


def calculate_recommendation(overall_score: float) -> Recommendation:
    """Map an overall score onto the standard recommendation tiers."""
    if overall_score >= STRONG_APPLY_MIN_SCORE:
        return Recommendation.STRONG_APPLY
    if overall_score >= APPLY_MIN_SCORE:
        return Recommendation.APPLY
    if overall_score >= MAYBE_MIN_SCORE:
        return Recommendation.MAYBE
    return Recommendation.SKIP


def recommendation_text(recommendation: Recommendation | str) -> str:
    try:
        return _RECOMMENDATION_TEXT[Recommendation(recommendation)]
    except ValueError:
        return "Unknown recommendation"


class Profile(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    experience_years: int = Field(default=0, ge=0)
    skills: List[str]
    location_preference: str = ""
    visa_status: VisaStatus = VisaStatus.EU_CITIZEN
    languages: Dict[str, LanguageProficiency] = {}
    company_size_preference: CompanySizePreference = CompanySizePreference.ANY
    remote_preference: RemotePreference = RemotePreference.FLEXIBLE
    min_salary: Optional[float] = Field(default=None, ge=0)


class Job(BaseModel):
    id: str
    title: str
    company: str = ""
    location: str = ""
    remote_type: RemoteType = RemoteType.OFFICE
    description: str = ""
    # The >=1 rule is enforced by the pipeline so it surfaces as InvalidInputError.
    requirements: List[str]
    nice_to_have: List[str] = []
    salary_min: Optional[float] = Field(default=None, ge=0)
    salary_max: Optional[float] = Field(default=None, ge=0)
    salary_currency: Optional[str] = None
    url: str = ""
    source: str = "manual"

    @model_validator(mode="after")
    def _salary_range_is_ordered(self) -> "Job":
        if self.salary_min is not None and self.salary_max is not None and self.salary_max < self.salary_min:
            raise ValueError("salary_max must be >= salary_min")
        return self


class ScoreBreakdown(BaseModel):
    skills_match: int = Field(ge=0, le=100)
    experience_match: int = Field(ge=0, le=100)
    location_match: int = Field(ge=0, le=100)
    company_match: int = Field(ge=0, le=100)
    requirements_match: int = Field(ge=0, le=100)


class MatchScore(BaseModel):
    job_id: str
    profile_id: Optional[str] = None
    overall_score: int = Field(ge=0, le=100)
    skills_match: int = Field(ge=0, le=100)
    experience_match: int = Field(ge=0, le=100)
    location_match: int = Field(ge=0, le=100)
    company_match: int = Field(ge=0, le=100)
    requirements_match: int = Field(ge=0, le=100)
    matching_skills: List[str] = []
    missing_skills: List[str] = []
    recommendation: Recommendation
    details: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="after")
    def _invariants_hold(self) -> "MatchScore":
        overlap = set(self.matching_skills) & set(self.missing_skills)
        if overlap:
            raise ValueError(
                "matching_skills and missing_skills cannot overlap: " + ", ".join(sorted(overlap))
            )
        if self.recommendation == Recommendation.STRONG_APPLY and self.overall_score < STRONG_APPLY_MIN_SCORE:
            raise ValueError("strong_apply recommendation requires overall_score >= 80")
        if self.recommendation == Recommendation.SKIP and self.overall_score >= MAYBE_MIN_SCORE:
            raise ValueError("skip recommendation requires overall_score < 40")
        return self

    def breakdown(self) -> ScoreBreakdown:
        return ScoreBreakdown(
            skills_match=self.skills_match,
            experience_match=self.experience_match,
            location_match=self.location_match,
            company_match=self.company_match,
            requirements_match=self.requirements_match,
        )


class ApiUsage(BaseModel):
    input_tokens: int = Field(ge=0)
    output_tokens: int = Field(ge=0)
    cost_usd: float = Field(ge=0)

    @property
    def tokens_used(self) -> int:
        return self.input_tokens + self.output_tokens


class MatchAnalysis(BaseModel):
    score: MatchScore
    usage: ApiUsage
    cached: bool = False
