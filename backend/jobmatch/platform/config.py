from pydantic_settings import BaseSettings
from dataclasses import dataclass
from typing import Optional

DEFAULT_CLAUDE_MODEL = "claude-sonnet-4-20250514"


class Settings(BaseSettings):
    # Deployment environment
    DEPLOYMENT_ENV: str = "development"

    # Claude / Anthropic
    ANTHROPIC_API_KEY: str = ""
    # Sonnet 4 is the model the default pricing below was taken from.
    CLAUDE_MODEL: str = DEFAULT_CLAUDE_MODEL
    MAX_TOKENS_PER_RESPONSE: int = 2000
    CLAUDE_TIMEOUT_SECONDS: float = 30.0

    # Match analysis pipeline
    MATCH_ANALYSIS_MAX_RETRIES: int = 3
    MATCH_ANALYSIS_RETRY_BASE_DELAY_SECONDS: float = 1.0
    MATCH_ANALYSIS_CACHE_ENABLED: bool = False
    # None keeps cached scores for the lifetime of the service instance.
    MATCH_ANALYSIS_CACHE_TTL_SECONDS: Optional[float] = None
    # Raw model scores within this distance of [0, 100] are clamped, not rejected.
    MATCH_SCORE_TOLERANCE: float = 1.0

    # Cost model defaults (all overridable via environment)
    CLAUDE_INPUT_COST_PER_MILLION_USD: float = 3.0
    CLAUDE_OUTPUT_COST_PER_MILLION_USD: float = 15.0

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"  # "json" | "text"

    @property
    def resolved_claude_model(self) -> str:
        """Claude model for match analysis. Defaults to claude-sonnet-4-20250514."""
        model = (self.CLAUDE_MODEL or "").strip()
        return model or DEFAULT_CLAUDE_MODEL

    def model_post_init(self, __context) -> None:
        if self.MATCH_ANALYSIS_MAX_RETRIES < 1:
            raise ValueError("MATCH_ANALYSIS_MAX_RETRIES must be at least 1.")
        if self.CLAUDE_INPUT_COST_PER_MILLION_USD < 0 or self.CLAUDE_OUTPUT_COST_PER_MILLION_USD < 0:
            raise ValueError("Claude token prices cannot be negative.")
        if self.MATCH_SCORE_TOLERANCE < 0:
            raise ValueError("MATCH_SCORE_TOLERANCE cannot be negative.")

    model_config = {
        "env_file": ".env",
        "extra": "ignore",
    }


@dataclass(frozen=True)
class MatchAnalysisOptions:
    timeout_seconds: float
    model: str
    max_tokens: int
    max_retries: int
    retry_base_delay_seconds: float
    enable_cache: bool
    cache_ttl_seconds: float | None
    score_tolerance: float

    @classmethod
    def from_settings(cls, source: "Settings | None" = None, **overrides) -> "MatchAnalysisOptions":
        cfg = source or settings
        values = {
            "timeout_seconds": float(cfg.CLAUDE_TIMEOUT_SECONDS),
            "model": cfg.resolved_claude_model,
            "max_tokens": int(cfg.MAX_TOKENS_PER_RESPONSE),
            "max_retries": int(cfg.MATCH_ANALYSIS_MAX_RETRIES),
            "retry_base_delay_seconds": float(cfg.MATCH_ANALYSIS_RETRY_BASE_DELAY_SECONDS),
            "enable_cache": bool(cfg.MATCH_ANALYSIS_CACHE_ENABLED),
            "cache_ttl_seconds": cfg.MATCH_ANALYSIS_CACHE_TTL_SECONDS,
            "score_tolerance": float(cfg.MATCH_SCORE_TOLERANCE),
        }
        values.update(overrides)
        if values["max_retries"] < 1:
            raise ValueError("max_retries must be at least 1")
        return cls(**values)


settings = Settings()
