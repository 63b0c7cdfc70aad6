"""Bounded polling with a linearly increasing delay schedule."""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Generic, List, Optional, TypeVar

from .decibel_models import PollAttempt, PollOutcome

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_BASE_DELAY = 2.0


class ConfirmationPoller(Generic[T]):
    """Poll a read-only check until a predicate holds or attempts run out.

    Attempt ``n`` (1-based) is preceded by a delay of ``n * base_delay``
    seconds, so the worst case total wait is
    ``max_attempts * (max_attempts + 1) / 2 * base_delay``. Exceptions from
    the check are logged and counted as transient failures; they never
    escape the poller.
    """

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay: float = DEFAULT_BASE_DELAY,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        label: str = "poll",
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if base_delay < 0:
            raise ValueError("base_delay must be non-negative")

        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.label = label
        self._sleep = sleep

        # State of the most recent poll() call
        self.attempts: List[PollAttempt] = []
        self.satisfied = False
        self.last_result: Optional[T] = None

    def delay_for(self, attempt_number: int) -> float:
        return attempt_number * self.base_delay

    @property
    def worst_case_wait(self) -> float:
        return self.max_attempts * (self.max_attempts + 1) / 2 * self.base_delay

    async def poll(
        self,
        check_fn: Callable[[], Awaitable[T]],
        is_satisfied: Callable[[T], bool],
    ) -> Optional[T]:
        """Run the polling loop.

        Args:
            check_fn: Coroutine function reading the current state
            is_satisfied: Predicate deciding whether the result is final

        Returns:
            The first satisfying result, otherwise the last result observed
            (None if every attempt failed)
        """
        self.attempts = []
        self.satisfied = False
        self.last_result = None

        for attempt_number in range(1, self.max_attempts + 1):
            delay = self.delay_for(attempt_number)
            if attempt_number > 1:
                logger.info(
                    f"{self.label}: attempt {attempt_number}/{self.max_attempts} (waiting {delay:g}s)"
                )
            await self._sleep(delay)

            try:
                result = await check_fn()
            except Exception as e:
                logger.warning(f"{self.label}: attempt {attempt_number} failed: {e}")
                self.attempts.append(PollAttempt(
                    attempt_number=attempt_number,
                    delay_before_attempt=delay,
                    outcome=PollOutcome.TRANSIENT_ERROR,
                    error=str(e),
                ))
                continue

            self.last_result = result
            if is_satisfied(result):
                self.attempts.append(PollAttempt(
                    attempt_number=attempt_number,
                    delay_before_attempt=delay,
                    outcome=PollOutcome.SUCCESS,
                ))
                self.satisfied = True
                logger.debug(f"{self.label}: satisfied on attempt {attempt_number}")
                return result

            self.attempts.append(PollAttempt(
                attempt_number=attempt_number,
                delay_before_attempt=delay,
                outcome=PollOutcome.EMPTY_RESULT,
            ))

        logger.warning(f"{self.label}: not satisfied after {self.max_attempts} attempts")
        return self.last_result


async def poll_until_satisfied(
    check_fn: Callable[[], Awaitable[T]],
    is_satisfied: Callable[[T], bool],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_delay: float = DEFAULT_BASE_DELAY,
) -> Optional[T]:
    """Convenience wrapper around :class:`ConfirmationPoller`."""
    poller: ConfirmationPoller[T] = ConfirmationPoller(max_attempts=max_attempts, base_delay=base_delay)
    return await poller.poll(check_fn, is_satisfied)
