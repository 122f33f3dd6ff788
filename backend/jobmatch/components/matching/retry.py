"""Exponential-backoff retry loop for Claude match analysis calls."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from .errors import Retryability, TransportError, classify_error

logger = logging.getLogger("jobmatch.retry")

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY_SECONDS = 1.0


def backoff_delay_seconds(attempt_index: int, base_delay_seconds: float = DEFAULT_BASE_DELAY_SECONDS) -> float:
    """Delay before the attempt after ``attempt_index`` (0-based): 1s, 2s, 4s, ..."""
    return float(base_delay_seconds) * (2 ** attempt_index)


async def attempt_with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = DEFAULT_MAX_RETRIES,
    *,
    base_delay_seconds: float = DEFAULT_BASE_DELAY_SECONDS,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    label: str = "operation",
) -> T:
    """Run ``operation`` up to ``max_retries`` times.

    Retryable failures back off deterministically (no jitter) and try again;
    non-retryable failures and the final failure propagate unchanged.
    """
    if max_retries < 1:
        raise ValueError("max_retries must be at least 1")

    for attempt_index in range(max_retries):
        try:
            result = await operation()
        except Exception as exc:
            if classify_error(exc) is Retryability.NON_RETRYABLE:
                logger.warning(
                    "%s failed with non-retryable %s on attempt %d/%d: %s",
                    label,
                    type(exc).__name__,
                    attempt_index + 1,
                    max_retries,
                    exc,
                )
                raise
            if attempt_index == max_retries - 1:
                logger.error(
                    "%s failed after %d attempts: %s",
                    label,
                    max_retries,
                    exc,
                )
                raise
            delay = backoff_delay_seconds(attempt_index, base_delay_seconds)
            logger.warning(
                "%s attempt %d/%d failed (%s kind=%s), retrying in %.1fs",
                label,
                attempt_index + 1,
                max_retries,
                exc,
                exc.kind.value if isinstance(exc, TransportError) else "unknown",
                delay,
            )
            await sleep(delay)
            continue

        if attempt_index > 0:
            logger.info("%s succeeded on attempt %d/%d", label, attempt_index + 1, max_retries)
        return result

    raise RuntimeError(f"{label} exhausted retries without a result")
