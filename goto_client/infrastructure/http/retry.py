"""
Retry policy - Bounded exponential backoff around transport calls.

Only ServerError (5xx, throttling) and TransportError are retried; every
other classified error is terminal because resubmitting the same request
cannot change the outcome.
"""

from __future__ import annotations
import logging
import random
import time
from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional, TypeVar

from ...domain.interfaces.transport import CancellationSignal
from ...domain.models.errors import (
    RETRYABLE_ERRORS,
    CancelledError,
    ConfigError,
    GotoClientError,
)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry behavior."""
    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    jitter: float = 0.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ConfigError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.base_delay < 0 or self.max_delay < 0 or self.jitter < 0:
            raise ConfigError("Retry delays and jitter must be non-negative")


@dataclass
class RetryState:
    """Progress of one ``execute`` call."""
    attempt: int = 0
    last_error: Optional[GotoClientError] = None
    delays: List[float] = field(default_factory=list)


class RetryPolicy:
    """Runs an operation until it succeeds, fails terminally, or runs out of attempts.

    Backoff pauses go through ``wait(delay, cancel)``, which returns True when
    the pause was cut short by cancellation. The default sleeps with ``sleep``
    when no token is given and waits on the token otherwise.
    """

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
        logger: Optional[logging.Logger] = None,
        wait: Optional[Callable[[float, Optional[CancellationSignal]], bool]] = None
    ):
        self._config = config or RetryConfig()
        self._sleep = sleep
        self._wait = wait or self._wait_or_sleep
        self._logger = logger or logging.getLogger(__name__)

    @property
    def config(self) -> RetryConfig:
        return self._config

    def _wait_or_sleep(self, delay: float, cancel: Optional[CancellationSignal]) -> bool:
        if cancel is None:
            self._sleep(delay)
            return False
        return cancel.wait(delay)

    def should_retry(self, error: GotoClientError, attempt: int, config: Optional[RetryConfig] = None) -> bool:
        """Determine if the failed ``attempt`` warrants another one."""
        config = config or self._config
        if attempt >= config.max_attempts:
            return False
        if isinstance(error, CancelledError):
            return False
        return isinstance(error, RETRYABLE_ERRORS)

    def get_delay(self, attempt: int, config: Optional[RetryConfig] = None) -> float:
        """Delay before ``attempt`` (1-indexed): base * 2^(attempt-2)."""
        config = config or self._config
        if attempt < 2:
            return 0.0
        delay = min(config.base_delay * (2 ** (attempt - 2)), config.max_delay)
        if config.jitter:
            delay += random.uniform(0, config.jitter * delay)
        return delay

    def execute(
        self,
        operation: Callable[[], T],
        *,
        max_attempts: Optional[int] = None,
        base_delay: Optional[float] = None,
        cancel: Optional[CancellationSignal] = None,
        state: Optional[RetryState] = None
    ) -> T:
        """Execute operation with exponential backoff retry logic.

        Raises the last classified error once retries are exhausted or a
        terminal error occurs. Pass ``state`` to inspect attempts and delays.
        """
        config = self._config
        if max_attempts is not None or base_delay is not None:
            config = replace(
                config,
                max_attempts=config.max_attempts if max_attempts is None else max_attempts,
                base_delay=config.base_delay if base_delay is None else base_delay,
            )
        state = state if state is not None else RetryState()

        while True:
            if cancel is not None and cancel.cancelled:
                raise CancelledError("Operation cancelled by caller")
            state.attempt += 1
            try:
                return operation()
            except GotoClientError as e:
                state.last_error = e

            error = state.last_error
            if not self.should_retry(error, state.attempt, config):
                if isinstance(error, RETRYABLE_ERRORS) and state.attempt > 1:
                    self._logger.error(f"Final attempt {state.attempt} failed: {error}")
                else:
                    self._logger.debug(f"Attempt {state.attempt} failed terminally: {error}")
                raise error

            delay = self.get_delay(state.attempt + 1, config)
            state.delays.append(delay)
            self._logger.warning(
                f"Attempt {state.attempt}/{config.max_attempts} failed ({error}); retrying in {delay:.2f}s"
            )
            if self._wait(delay, cancel):
                raise CancelledError("Operation cancelled by caller") from error
