"""Run a service call across several API keys.

Rate-limited (429) or unavailable (503) keys hand over to the next key.
Any other failure, or a timeout, ends the attempt at once. Every way of
giving up raises ``ExternalServiceError``.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

import litellm

from nodecanvas.config.schema import AssistantConfig
from nodecanvas.errors import ExternalServiceError
from nodecanvas.logging import get_logger

log = get_logger("assistant")

T = TypeVar("T")

RETRYABLE_STATUS = frozenset({429, 503})


def keys_from_env(config: AssistantConfig) -> list[str]:
    """API keys from the configured environment variables, in order."""
    return [key for name in config.api_key_env if (key := os.environ.get(name))]


def status_of(error: BaseException) -> int | None:
    for attr in ("status_code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value
    return None


def is_retryable(error: BaseException) -> bool:
    if isinstance(error, (litellm.RateLimitError, litellm.ServiceUnavailableError)):
        return True
    status = status_of(error)
    if status in RETRYABLE_STATUS:
        return True
    return "429" in str(error)


async def call_with_failover(
    operation: Callable[[str], Awaitable[T]],
    api_keys: Sequence[str],
    timeout: float = 60.0,
) -> T:
    """Await ``operation(key)`` for each key until one succeeds.

    Raises:
        ExternalServiceError: No keys, a non-retryable failure or timeout,
            or every key was rate limited or unavailable.
    """
    if not api_keys:
        raise ExternalServiceError("No API keys configured")

    last_status: int | None = None
    for attempt, key in enumerate(api_keys, start=1):
        try:
            return await asyncio.wait_for(operation(key), timeout)
        except asyncio.TimeoutError as e:
            log.error("Service call timed out after %.0fs", timeout)
            raise ExternalServiceError(
                f"Service call timed out ({timeout:.0f}s limit)", attempts=attempt
            ) from e
        except Exception as e:
            if is_retryable(e):
                last_status = status_of(e) or 429
                log.warning("API key %s... rate limited or unavailable, switching", key[:5])
                continue
            log.error("Service call failed: %s", e)
            raise ExternalServiceError(str(e), status=status_of(e), attempts=attempt) from e

    log.error("All %d API keys are rate limited or unavailable", len(api_keys))
    raise ExternalServiceError(
        "All API keys are rate limited or unavailable",
        status=last_status,
        attempts=len(api_keys),
    )
