"""Bounded retry with exponential backoff, jitter and a total time budget."""
import logging
import random
import time
from dataclasses import dataclass, fields
from enum import Enum
from typing import Callable, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(Enum):
    """Whether a failure is worth retrying."""
    TRANSIENT = "transient"  # timeouts, resets, 5xx, 429, flood waits
    PERMANENT = "permanent"  # other 4xx, malformed payloads, auth problems


class ClassifiedError(Exception):
    """
    Failure tagged with a retry classification.

    Boundary adapters translate raw transport errors into subclasses of this,
    so retry decisions never depend on message text.
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.PERMANENT,
        retry_after: Optional[float] = None
    ):
        super().__init__(message)
        self.kind = kind
        self.retry_after = retry_after  # suggested minimum wait, seconds

    @property
    def transient(self) -> bool:
        return self.kind is ErrorKind.TRANSIENT


def is_transient(err: Exception, attempt: int = 0) -> bool:
    """Default eligibility check: only classified transient failures are retried."""
    return isinstance(err, ClassifiedError) and err.transient


@dataclass(frozen=True)
class RetryOverrides:
    """Per-call adjustments layered over a base RetryPolicy."""
    max_attempts: Optional[int] = None
    base_delay: Optional[float] = None
    max_delay: Optional[float] = None
    max_total_elapsed: Optional[float] = None


@dataclass(frozen=True)
class RetryPolicy:
    """Immutable retry configuration. Delays are in seconds."""
    max_attempts: int = 6
    base_delay: float = 1.5
    max_delay: float = 45.0
    max_total_elapsed: float = 300.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        for name in ("base_delay", "max_delay", "max_total_elapsed"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")

    def with_overrides(self, overrides: Optional[RetryOverrides]) -> "RetryPolicy":
        """Return a new policy where every field set on ``overrides`` wins."""
        if overrides is None:
            return self
        values = {}
        for field in fields(self):
            override = getattr(overrides, field.name)
            values[field.name] = getattr(self, field.name) if override is None else override
        return RetryPolicy(**values)

    def backoff(self, attempt: int) -> float:
        """Exponential delay for a zero-based attempt index, before jitter."""
        return min(self.max_delay, self.base_delay * (2 ** attempt))


@dataclass
class RetryHooks:
    """Optional callbacks invoked by execute(); each receives (error, attempt_index)."""
    on_failure: Optional[Callable[[Exception, int], None]] = None
    should_retry: Optional[Callable[[Exception, int], bool]] = None
    before_retry: Optional[Callable[[Exception, int], None]] = None


def execute(
    operation: Callable[[], T],
    policy: RetryPolicy,
    hooks: Optional[RetryHooks] = None,
    *,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
    rng: Callable[[], float] = random.random
) -> T:
    """
    Run ``operation`` until it succeeds or the policy says to stop.

    Args:
        operation: Zero-argument callable to attempt
        policy: Attempt count and delay limits
        hooks: Optional failure/eligibility/pre-retry callbacks
        sleep: Sleep function (injectable for tests)
        clock: Monotonic clock in seconds (injectable for tests)
        rng: Uniform [0, 1) source used for jitter

    Returns:
        Whatever ``operation`` returned on its first successful attempt

    Raises:
        The last exception raised by ``operation``, unchanged
    """
    hooks = hooks or RetryHooks()
    started_at = clock()
    attempt = 0

    while True:
        try:
            return operation()
        except Exception as err:
            if hooks.on_failure:
                try:
                    hooks.on_failure(err, attempt)
                except Exception:
                    logging.exception("on_failure hook raised, ignoring")

            allowed = hooks.should_retry(err, attempt) if hooks.should_retry else True
            elapsed = clock() - started_at
            if (
                not allowed
                or attempt + 1 >= policy.max_attempts
                or elapsed >= policy.max_total_elapsed
            ):
                raise

            delay = policy.backoff(attempt)
            delay += rng() * (delay / 2)

            if hooks.before_retry:
                try:
                    hooks.before_retry(err, attempt)
                except Exception as hook_err:
                    logging.warning(f"before_retry hook failed, continuing: {hook_err}")

            # before_retry may have slept, so the budget is re-read here
            elapsed = clock() - started_at
            if elapsed >= policy.max_total_elapsed:
                logging.debug(f"Retry budget of {policy.max_total_elapsed}s spent, giving up")
                raise
            delay = min(delay, policy.max_total_elapsed - elapsed)

            logging.debug(f"Attempt {attempt + 2}/{policy.max_attempts} in {delay:.2f}s")
            sleep(delay)
            attempt += 1
