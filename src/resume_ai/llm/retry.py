"""Attempt loop with exponential backoff, expressed as a small state machine."""

from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Iterator

from .types import GenerationCancelled, is_retryable

logger = logging.getLogger(__name__)


class AttemptState(enum.Enum):
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


@dataclass
class RetryOutcome:
    state: AttemptState
    value: Any = None
    last_error: BaseException | None = None
    attempts: int = 0
    waited: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.state is AttemptState.SUCCEEDED


def backoff_delays(base_delay: float, attempts: int) -> Iterator[float]:
    """Waits between consecutive attempts: base, 2*base, 4*base, ..."""
    for k in range(1, attempts):
        yield base_delay * (2 ** (k - 1))


class RetryController:
    """Runs an operation up to ``max_attempts`` times.

    With ``max_attempts`` of 0 the machine starts EXHAUSTED without calling
    the operation. Retryable errors move the machine back to ATTEMPTING after
    a backoff wait, or to EXHAUSTED on the final attempt. Any other error is
    terminal (FAILED).
    ``sleep`` receives the delay in seconds; the default waits on the cancel
    event so a pending wait ends as soon as the caller cancels.
    """

    def __init__(
        self,
        max_attempts: int,
        base_delay: float = 1.0,
        sleep: Callable[[float], None] | None = None,
        cancel_event: threading.Event | None = None,
        label: str = "attempt",
    ) -> None:
        self.max_attempts = max(0, int(max_attempts))
        self.base_delay = float(base_delay)
        self.cancel_event = cancel_event or threading.Event()
        self._sleep = sleep or self._wait_for_cancel
        self.label = label

    def _wait_for_cancel(self, delay: float) -> None:
        self.cancel_event.wait(delay)

    def _check_cancelled(self) -> None:
        if self.cancel_event.is_set():
            raise GenerationCancelled("generation cancelled")

    def run(self, operation: Callable[[], Any]) -> RetryOutcome:
        outcome = RetryOutcome(state=AttemptState.ATTEMPTING)
        delays = backoff_delays(self.base_delay, self.max_attempts)
        if self.max_attempts == 0:
            outcome.state = AttemptState.EXHAUSTED

        while outcome.state is AttemptState.ATTEMPTING:
            self._check_cancelled()
            outcome.attempts += 1
            logger.info("%s %d/%d", self.label, outcome.attempts, self.max_attempts)
            try:
                outcome.value = operation()
            except Exception as exc:
                outcome.last_error = exc
                if not is_retryable(exc):
                    logger.error("%s %d/%d failed permanently: %s", self.label, outcome.attempts, self.max_attempts, exc)
                    outcome.state = AttemptState.FAILED
                elif outcome.attempts >= self.max_attempts:
                    logger.warning("%s %d/%d failed: %s", self.label, outcome.attempts, self.max_attempts, exc)
                    outcome.state = AttemptState.EXHAUSTED
                else:
                    logger.warning("%s %d/%d failed: %s", self.label, outcome.attempts, self.max_attempts, exc)
                    delay = next(delays)
                    self._sleep(delay)
                    outcome.waited += delay
                continue
            outcome.last_error = None
            outcome.state = AttemptState.SUCCEEDED

        return outcome
