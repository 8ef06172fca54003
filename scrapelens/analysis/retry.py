"""Retry policy for analyzer calls.

``RetryPolicy.decide`` is a pure mapping from (attempt number, error) to
"retry after N ms" or "abort", so the backoff rules can be tested without
any network call.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, TypeVar

from scrapelens.core.errors import ProviderError, QuotaError
from scrapelens.core.logging import get_logger

log = get_logger("analysis.retry")

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryDecision:
    retry: bool
    delay_ms: int = 0

    @classmethod
    def abort(cls) -> "RetryDecision":
        return cls(retry=False)


def is_retryable(error: BaseException) -> bool:
    """Only non-quota 429s and 5xx responses are worth another attempt."""
    if isinstance(error, QuotaError) or not isinstance(error, ProviderError):
        return False
    return error.is_rate_limited or error.is_server_error


def is_batch_terminating(error: BaseException) -> bool:
    """Quota exhaustion or a rate limit that outlived its retries stops the batch."""
    if isinstance(error, QuotaError):
        return True
    return isinstance(error, ProviderError) and error.is_rate_limited


@dataclass
class RetryPolicy:
    max_attempts: int = 3
    base_delay_ms: int = 300
    jitter_ms: int = 200
    rng: random.Random = field(default_factory=random.Random)

    def backoff_ms(self, attempt: int) -> int:
        """Delay after failed ``attempt`` (1-based): base * 2**(attempt-1) + jitter."""
        jitter = self.rng.randrange(self.jitter_ms) if self.jitter_ms > 0 else 0
        return self.base_delay_ms * (2 ** (attempt - 1)) + jitter

    def decide(self, attempt: int, error: BaseException) -> RetryDecision:
        if attempt >= self.max_attempts or not is_retryable(error):
            return RetryDecision.abort()
        return RetryDecision(retry=True, delay_ms=self.backoff_ms(attempt))


async def call_with_retry(
    call: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    sleep: Sleep = asyncio.sleep,
) -> T:
    """Run ``call`` until it succeeds or ``policy`` says to stop; re-raise the last error."""
    attempt = 0
    while True:
        attempt += 1
        try:
            return await call()
        except Exception as exc:  # noqa: BLE001 - classified by the policy, re-raised on abort
            decision = policy.decide(attempt, exc)
            if not decision.retry:
                raise
            log.warning(f"Analyzer attempt {attempt}/{policy.max_attempts} failed ({exc}); retrying in {decision.delay_ms}ms")
            await sleep(decision.delay_ms / 1000)


def policy_from_settings(settings, rng: Optional[random.Random] = None) -> RetryPolicy:
    return RetryPolicy(
        max_attempts=settings.RETRY_MAX_ATTEMPTS,
        base_delay_ms=settings.RETRY_BASE_DELAY_MS,
        jitter_ms=settings.RETRY_JITTER_MS,
        rng=rng or random.Random(),
    )
