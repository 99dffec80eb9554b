"""Unbounded fixed-interval retry built on tenacity.

Usage:
    policy = BackoffPolicy(interval=60.0)
    snapshot = await retry_forever(fetch_and_validate, policy)

Only TransientError is retried. Anything else, including fatal errors,
propagates on the first occurrence.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import tenacity
from loguru import logger

from ghostwatch.core.errors import TransientError
from ghostwatch.pipeline.models import BackoffPolicy

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


def _log_before_sleep(retry_state: tenacity.RetryCallState) -> None:
    outcome = retry_state.outcome
    error = outcome.exception() if outcome is not None else None
    delay = retry_state.next_action.sleep if retry_state.next_action is not None else 0.0
    logger.warning(
        "Attempt {} failed: {}. Retrying in {:.0f}s",
        retry_state.attempt_number,
        error,
        delay,
    )


def build_retryer(policy: BackoffPolicy, sleep: Sleep = asyncio.sleep) -> tenacity.AsyncRetrying:
    """Build a tenacity retryer from BackoffPolicy configuration."""
    wait: tenacity.wait.wait_base = tenacity.wait_fixed(policy.interval)
    if policy.jitter > 0:
        wait = wait + tenacity.wait_random(0, policy.jitter)

    return tenacity.AsyncRetrying(
        sleep=sleep,
        stop=tenacity.stop_never,
        wait=wait,
        retry=tenacity.retry_if_exception_type(TransientError),
        before_sleep=_log_before_sleep,
        reraise=True,
    )


async def retry_forever(
    operation: Callable[[], Awaitable[T]],
    policy: BackoffPolicy,
    sleep: Sleep = asyncio.sleep,
) -> T:
    """Await ``operation`` until it succeeds, backing off after transient failures."""
    retryer = build_retryer(policy, sleep)
    async for attempt in retryer:
        with attempt:
            return await operation()
    raise AssertionError("unreachable: retryer stops only on success")  # pragma: no cover
