"""
Retry Patterns for agentcore.

Provides the retry wrapper used around model backend calls:
- BackoffStrategy: Delay calculation between retries
- RetryPolicy: How many attempts, and what counts as a failure
- with_retry: Execute an async operation under a policy

A backend signals a transient failure by returning None (or raising).
Both are retried; anything else is returned to the caller as-is.
Tool-level failures never pass through here.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

T = TypeVar("T")


# =============================================================================
# Backoff Strategies
# =============================================================================


class BackoffStrategy(ABC):
    """
    Abstract base for backoff delay calculation.

    Backoff strategies determine how long to wait between retry attempts.
    """

    @abstractmethod
    def get_delay(self, attempt: int) -> float:
        """
        Calculate delay before next retry attempt.

        Args:
            attempt: Current attempt number (1-indexed, first retry is attempt 1)

        Returns:
            Delay in seconds before next attempt
        """
        ...


@dataclass
class NoBackoff(BackoffStrategy):
    """No delay between retries (tests, fail-fast setups)."""

    def get_delay(self, attempt: int) -> float:
        return 0.0


@dataclass
class ConstantBackoff(BackoffStrategy):
    """
    Fixed delay between retries.

    Example:
        backoff = ConstantBackoff(delay=1.0)
        # Always waits 1 second between retries
    """

    delay: float = 1.0

    def get_delay(self, attempt: int) -> float:
        return self.delay


def is_none(result: Any) -> bool:
    """Result predicate: retry when the operation produced nothing."""
    return result is None


# =============================================================================
# Retry Policy
# =============================================================================


@dataclass
class RetryPolicy:
    """
    Configures retry behavior for an operation.

    Determines:
    - How many times to attempt (max_attempts = 1 + retries)
    - Which exceptions trigger retry
    - Which results trigger retry
    - How long to wait between retries

    Example:
        policy = RetryPolicy.for_backend(max_retries=3, delay=1.0)
    """

    max_attempts: int = 1  # 1 = no retry (single attempt)
    backoff: BackoffStrategy = field(default_factory=NoBackoff)
    retry_on: tuple[type[Exception], ...] = (Exception,)
    retry_on_result: Callable[[Any], bool] | None = None  # Retry if returns True

    @classmethod
    def for_backend(cls, max_retries: int, delay: float) -> "RetryPolicy":
        """
        Policy for model backend calls: fixed delay, retry on None or error.

        Args:
            max_retries: Retries after the first attempt
            delay: Seconds to sleep between attempts
        """
        return cls(
            max_attempts=max_retries + 1,
            backoff=ConstantBackoff(delay=delay) if delay > 0 else NoBackoff(),
            retry_on_result=is_none,
        )

    def should_retry(self, attempt: int, error: Exception | None = None) -> bool:
        """
        Determine if retry should be attempted.

        Args:
            attempt: Current attempt number (1-indexed)
            error: Exception that caused failure (if any)

        Returns:
            True if should retry, False otherwise
        """
        if attempt >= self.max_attempts:
            return False

        if error is not None:
            return isinstance(error, self.retry_on)

        return False

    def get_delay(self, attempt: int) -> float:
        """Get delay before next retry attempt."""
        return self.backoff.get_delay(attempt)


# =============================================================================
# Retry Executor
# =============================================================================


@dataclass
class RetryResult:
    """Result of a retry-wrapped operation."""

    success: bool
    result: Any = None
    attempts: int = 0
    total_delay: float = 0.0
    errors: list[Exception] = field(default_factory=list)

    @property
    def final_error(self) -> Exception | None:
        """Get the last error encountered."""
        return self.errors[-1] if self.errors else None


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    operation_name: str = "operation",
) -> RetryResult:
    """
    Execute an async operation with retry logic.

    Args:
        operation: Async callable to execute
        policy: Retry policy to apply
        operation_name: Name for logging

    Returns:
        RetryResult with success status and result/errors. When the
        result predicate keeps firing until attempts run out, success is
        False and result holds the last value returned.

    Example:
        result = await with_retry(
            lambda: client.chat(messages),
            policy=RetryPolicy.for_backend(max_retries=3, delay=1.0),
            operation_name="chat",
        )
    """
    errors: list[Exception] = []
    total_delay = 0.0
    attempt = 0

    while True:
        attempt += 1

        try:
            result = await operation()
        except Exception as e:
            errors.append(e)

            if policy.should_retry(attempt, e):
                delay = policy.get_delay(attempt)
                total_delay += delay
                logger.warning(
                    f"[retry] {operation_name}: Attempt {attempt}/{policy.max_attempts} "
                    f"failed with {type(e).__name__}: {e}, "
                    f"retrying in {delay:.2f}s"
                )
                await asyncio.sleep(delay)
                continue

            logger.error(
                f"[retry] {operation_name}: Failed after {attempt} attempts, last error: {e}"
            )
            return RetryResult(
                success=False,
                attempts=attempt,
                total_delay=total_delay,
                errors=errors,
            )

        if policy.retry_on_result and policy.retry_on_result(result):
            if attempt < policy.max_attempts:
                delay = policy.get_delay(attempt)
                total_delay += delay
                logger.warning(
                    f"[retry] {operation_name}: Result triggered retry "
                    f"(attempt {attempt}/{policy.max_attempts}), "
                    f"waiting {delay:.2f}s"
                )
                await asyncio.sleep(delay)
                continue

            logger.error(
                f"[retry] {operation_name}: Max retries ({policy.max_attempts - 1}) exceeded"
            )
            return RetryResult(
                success=False,
                result=result,
                attempts=attempt,
                total_delay=total_delay,
                errors=errors,
            )

        return RetryResult(
            success=True,
            result=result,
            attempts=attempt,
            total_delay=total_delay,
            errors=errors,
        )
