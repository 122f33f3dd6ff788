"""Claude token cost accounting for match analyses."""

from __future__ import annotations

from ...platform.config import settings
from .schemas import ApiUsage

TOKENS_PER_MILLION = 1_000_000


def _input_cost_per_token_usd() -> float:
    return float(settings.CLAUDE_INPUT_COST_PER_MILLION_USD) / TOKENS_PER_MILLION


def _output_cost_per_token_usd() -> float:
    return float(settings.CLAUDE_OUTPUT_COST_PER_MILLION_USD) / TOKENS_PER_MILLION


def compute_claude_cost_usd(input_tokens: int = 0, output_tokens: int = 0) -> float:
    """Compute Claude USD cost from token counts.

    Negative counts are rejected rather than clamped; they can only come from
    a broken client.
    """
    if input_tokens < 0 or output_tokens < 0:
        raise ValueError("Token counts cannot be negative")
    return (input_tokens * _input_cost_per_token_usd()) + (output_tokens * _output_cost_per_token_usd())


def build_api_usage(input_tokens: int = 0, output_tokens: int = 0) -> ApiUsage:
    safe_input = int(input_tokens or 0)
    safe_output = int(output_tokens or 0)
    return ApiUsage(
        input_tokens=safe_input,
        output_tokens=safe_output,
        cost_usd=compute_claude_cost_usd(safe_input, safe_output),
    )
