"""Bounded retry with exponential backoff."""

from __future__ import annotations

import logging
import random
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import backoff

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int,
    base_delay: float,
    *,
    jitter: float = 0.0,
    description: str = "operation",
) -> T:
    """Invoke ``operation`` up to ``max_attempts`` times.

    Between attempt ``i`` and ``i + 1`` (0-indexed) waits ``base_delay * 2**i``
    seconds, plus a uniform random amount up to ``jitter`` seconds when
    ``jitter`` is positive. The last failure is re-raised unchanged; error
    kinds are not inspected.

    Args:
        operation: Zero-argument coroutine function to invoke
        max_attempts: Total number of attempts, at least 1
        base_delay: Delay before the first retry, in seconds
        jitter: Upper bound of random delay added to each wait
        description: Label used in log messages

    Returns:
        The result of the first successful attempt
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

    def _on_backoff(details: Any) -> None:
        logger.warning(
            "%s failed (attempt %d of %d), retrying in %.2fs: %s",
            description,
            details["tries"],
            max_attempts,
            details["wait"],
            details.get("exception"),
        )

    def _on_giveup(details: Any) -> None:
        logger.error(
            "%s failed after %d attempt(s): %s",
            description,
            details["tries"],
            details.get("exception"),
        )

    def _add_jitter(value: float) -> float:
        return value + random.uniform(0, jitter)

    @backoff.on_exception(
        backoff.expo,
        Exception,
        max_tries=max_attempts,
        factor=base_delay,
        jitter=_add_jitter if jitter > 0 else None,
        on_backoff=_on_backoff,
        on_giveup=_on_giveup,
        logger=None,
    )
    async def _attempt() -> T:
        return await operation()

    return await _attempt()
