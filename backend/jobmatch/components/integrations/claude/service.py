"""
Anthropic Claude client used by the match analysis pipeline.

Wraps the async Messages API and converts SDK failures into tagged
``TransportError`` values at the point of failure, so the retry loop never
has to inspect error messages.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

import anthropic

from ....platform.config import settings
from ...matching.errors import ParseError, TransportError, TransportErrorKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelReply:
    text: str
    input_tokens: int
    output_tokens: int
    model: str = ""


class ModelClient(Protocol):
    async def send(
        self,
        prompt: str,
        *,
        model: str,
        max_tokens: int,
        timeout_seconds: float,
        system: Optional[str] = None,
    ) -> ModelReply:
        ...


def to_transport_error(exc: anthropic.APIError) -> TransportError:
    """Tag an Anthropic SDK error with its transport failure kind."""
    # APITimeoutError subclasses APIConnectionError, so it must be checked first.
    if isinstance(exc, anthropic.APITimeoutError):
        return TransportError(f"Claude request timed out: {exc}", TransportErrorKind.TIMEOUT)
    if isinstance(exc, anthropic.APIConnectionError):
        return TransportError(f"Could not reach Claude API: {exc}", TransportErrorKind.CONNECTION)
    status_code = getattr(exc, "status_code", None)
    if isinstance(exc, (anthropic.AuthenticationError, anthropic.PermissionDeniedError)):
        return TransportError(f"Claude rejected credentials: {exc}", TransportErrorKind.AUTHENTICATION, status_code)
    if isinstance(exc, anthropic.RateLimitError):
        return TransportError(f"Claude rate limit hit: {exc}", TransportErrorKind.RATE_LIMIT, status_code)
    return TransportError(f"Claude API error: {exc}", TransportErrorKind.API_STATUS, status_code)


def _first_text_block(response: Any) -> Optional[str]:
    for block in getattr(response, "content", None) or []:
        block_type = getattr(block, "type", "text")
        text = getattr(block, "text", None)
        if block_type == "text" and isinstance(text, str):
            return text
    return None


def _usage_tokens(response: Any) -> tuple[int, int]:
    usage = getattr(response, "usage", None)
    input_tokens = getattr(usage, "input_tokens", None) if usage is not None else None
    output_tokens = getattr(usage, "output_tokens", None) if usage is not None else None
    if input_tokens is None or output_tokens is None:
        logger.warning("Claude response is missing usage token metadata; recording zero tokens")
    return max(0, int(input_tokens or 0)), max(0, int(output_tokens or 0))


class ClaudeMessagesClient:
    """Model client backed by ``anthropic.AsyncAnthropic``."""

    def __init__(self, api_key: Optional[str] = None, *, client: Any = None):
        """
        Initialise the Claude client.

        Args:
            api_key: Anthropic API key. Falls back to ANTHROPIC_API_KEY.
            client: Pre-built async Anthropic client (tests, shared pools).
        """
        key = (api_key if api_key is not None else settings.ANTHROPIC_API_KEY) or ""
        if client is None and not key.strip():
            raise ValueError("API key is required")
        # SDK-level retries are disabled; backoff belongs to the match pipeline.
        self.client = client or anthropic.AsyncAnthropic(api_key=key.strip(), max_retries=0)
        logger.info("ClaudeMessagesClient initialised")

    async def send(
        self,
        prompt: str,
        *,
        model: str,
        max_tokens: int,
        timeout_seconds: float,
        system: Optional[str] = None,
    ) -> ModelReply:
        request: dict[str, Any] = {
            "model": model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}],
            "timeout": timeout_seconds,
        }
        if system:
            request["system"] = system

        logger.info(
            "Sending match analysis request to Claude (prompt_chars=%d, model=%s)",
            len(prompt),
            model,
        )
        try:
            response = await self.client.messages.create(**request)
        except anthropic.APIError as exc:
            raise to_transport_error(exc) from exc

        text = _first_text_block(response)
        if text is None:
            raise ParseError("Unexpected response type from Claude API")

        input_tokens, output_tokens = _usage_tokens(response)
        logger.info(
            "Claude response received (input_tokens=%d, output_tokens=%d)",
            input_tokens,
            output_tokens,
        )
        return ModelReply(
            text=text,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            model=str(getattr(response, "model", None) or model),
        )
