"""Profile-to-job match analysis via Claude.

``MatchAnalysisService.analyze_match`` is the single entry point: it checks
inputs, consults the optional cache, renders the prompt, and runs
[Claude call -> parse -> validate] under the retry loop. It returns a
``MatchAnalysis`` pairing the validated ``MatchScore`` with token usage.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Awaitable, Callable, Mapping, Optional, Tuple

from pydantic import ValidationError

from ...platform.config import MatchAnalysisOptions
from ...platform.request_context import reset_analysis_id, set_analysis_id
from ..integrations.claude.service import ClaudeMessagesClient, ModelClient, ModelReply
from .cache import MatchResultCache, cache_key_for
from .costs import build_api_usage
from .errors import InvalidInputError, MatchAnalysisFailed
from .parsing import parse_model_response
from .prompts import MATCH_SYSTEM_PROMPT, build_match_prompt
from .retry import attempt_with_retry
from .schemas import Job, MatchAnalysis, MatchScore, Profile, ScoreBreakdown
from .validation import ValidatedMatchPayload, validate_match_payload

logger = logging.getLogger("jobmatch.match_analysis")

NO_DETAILS_TEXT = "No detailed analysis available"


def _validation_messages(exc: ValidationError) -> list[str]:
    messages = []
    for err in exc.errors():
        path = ".".join(str(part) for part in err.get("loc", ())) or "$"
        messages.append(f"{path}: {err.get('msg', 'invalid value')}")
    return messages


def _coerce_profile(profile: Profile | Mapping[str, Any] | None) -> Profile:
    if isinstance(profile, Profile):
        candidate = profile
    elif isinstance(profile, Mapping):
        try:
            candidate = Profile.model_validate(dict(profile))
        except ValidationError as exc:
            messages = _validation_messages(exc)
            raise InvalidInputError("Invalid profile: " + "; ".join(messages), messages) from exc
    else:
        raise InvalidInputError("Invalid profile: missing required fields", ["profile"])

    missing = [name for name in ("id", "name") if not getattr(candidate, name).strip()]
    if missing:
        raise InvalidInputError("Invalid profile: missing required fields (" + ", ".join(missing) + ")", missing)
    return candidate


def _coerce_job(job: Job | Mapping[str, Any] | None) -> Job:
    if isinstance(job, Job):
        candidate = job
    elif isinstance(job, Mapping):
        try:
            candidate = Job.model_validate(dict(job))
        except ValidationError as exc:
            messages = _validation_messages(exc)
            raise InvalidInputError("Invalid job: " + "; ".join(messages), messages) from exc
    else:
        raise InvalidInputError("Invalid job: missing required fields", ["job"])

    missing = [name for name in ("id", "title") if not getattr(candidate, name).strip()]
    if not candidate.requirements:
        missing.append("requirements")
    if missing:
        raise InvalidInputError("Invalid job: missing required fields (" + ", ".join(missing) + ")", missing)
    return candidate


class MatchAnalysisService:
    """AI match analysis between a candidate profile and a job posting."""

    def __init__(
        self,
        model_client: Optional[ModelClient] = None,
        options: Optional[MatchAnalysisOptions] = None,
        *,
        api_key: Optional[str] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Initialise the match analysis service.

        Args:
            model_client: Client used to reach Claude. Built from ``api_key``
                (or ANTHROPIC_API_KEY) when omitted.
            options: Pipeline options. Defaults come from settings.
            api_key: Anthropic API key for the default client.
            sleep: Awaitable used for retry backoff.
        """
        self.options = options or MatchAnalysisOptions.from_settings()
        self.model_client = model_client or ClaudeMessagesClient(api_key)
        self.cache = MatchResultCache(ttl_seconds=self.options.cache_ttl_seconds)
        self._sleep = sleep
        logger.info(
            "MatchAnalysisService initialised (model=%s, max_retries=%d, cache=%s)",
            self.options.model,
            self.options.max_retries,
            "on" if self.options.enable_cache else "off",
        )

    async def analyze_match(
        self,
        profile: Profile | Mapping[str, Any],
        job: Job | Mapping[str, Any],
    ) -> MatchAnalysis:
        """Analyse how well ``profile`` fits ``job``.

        Raises:
            InvalidInputError: profile or job is unusable. Raised before any
                Claude call and never retried.
            MatchAnalysisFailed: the Claude call, parsing or validation failed
                after classification and retries. ``.cause`` holds the
                original error.
        """
        profile_model = _coerce_profile(profile)
        job_model = _coerce_job(job)

        token = set_analysis_id(uuid.uuid4().hex[:12])
        try:
            key = cache_key_for(profile_model.id, job_model.id)
            if self.options.enable_cache:
                cached = self.cache.get(key)
                if cached is not None:
                    logger.info("Cache hit for analysis (profile_id=%s, job_id=%s)", profile_model.id, job_model.id)
                    return cached.model_copy(update={"cached": True}, deep=True)

            logger.info("Starting match analysis (profile_id=%s, job_id=%s)", profile_model.id, job_model.id)
            prompt = build_match_prompt(profile_model, job_model)

            try:
                reply, payload = await attempt_with_retry(
                    lambda: self._request_analysis(prompt),
                    self.options.max_retries,
                    base_delay_seconds=self.options.retry_base_delay_seconds,
                    sleep=self._sleep,
                    label="Claude match analysis",
                )
            except Exception as exc:
                logger.error(
                    "Match analysis failed (profile_id=%s, job_id=%s): %s (type=%s)",
                    profile_model.id,
                    job_model.id,
                    exc,
                    type(exc).__name__,
                )
                raise MatchAnalysisFailed(exc) from exc

            usage = build_api_usage(reply.input_tokens, reply.output_tokens)
            score = MatchScore(
                job_id=job_model.id,
                profile_id=profile_model.id,
                matching_skills=payload.matching_skills,
                missing_skills=payload.missing_skills,
                recommendation=payload.recommendation,
                details=payload.details,
                **payload.scores(),
            )
            analysis = MatchAnalysis(score=score, usage=usage)

            if self.options.enable_cache:
                self.cache.set(key, analysis.model_copy(deep=True))
                logger.info("Cached analysis (profile_id=%s, job_id=%s)", profile_model.id, job_model.id)

            logger.info(
                "Match analysis complete: overall=%d skills=%d experience=%d location=%d company=%d "
                "requirements=%d recommendation=%s input_tokens=%d output_tokens=%d cost_usd=%.6f",
                score.overall_score,
                score.skills_match,
                score.experience_match,
                score.location_match,
                score.company_match,
                score.requirements_match,
                score.recommendation.value,
                usage.input_tokens,
                usage.output_tokens,
                usage.cost_usd,
            )
            return analysis
        finally:
            reset_analysis_id(token)

    async def _request_analysis(self, prompt: str) -> Tuple[ModelReply, ValidatedMatchPayload]:
        reply = await self.model_client.send(
            prompt,
            model=self.options.model,
            max_tokens=self.options.max_tokens,
            timeout_seconds=self.options.timeout_seconds,
            system=MATCH_SYSTEM_PROMPT,
        )
        candidate = parse_model_response(reply.text)
        payload = validate_match_payload(candidate, score_tolerance=self.options.score_tolerance)
        return reply, payload

    async def calculate_score_breakdown(
        self,
        profile: Profile | Mapping[str, Any],
        job: Job | Mapping[str, Any],
    ) -> ScoreBreakdown:
        analysis = await self.analyze_match(profile, job)
        return analysis.score.breakdown()

    async def generate_detailed_analysis(
        self,
        profile: Profile | Mapping[str, Any],
        job: Job | Mapping[str, Any],
    ) -> str:
        analysis = await self.analyze_match(profile, job)
        return analysis.score.details or NO_DETAILS_TEXT

    def clear_cache(self) -> None:
        removed = self.cache.clear()
        logger.info("Cache cleared (entries=%d)", removed)

