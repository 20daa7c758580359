"""
Retry/conflict policy for versioned commits.

A version conflict means another writer committed first; the whole
read-validate-commit sequence is re-run against fresh state up to a small
fixed number of attempts, without backoff. Any other failure is terminal.
"""

from __future__ import annotations

from typing import Callable, TypeVar

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_none,
)

from benefits.domain.errors import ConcurrentUpdateConflict, VersionConflict
from benefits.utils.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3


class ConflictRetryPolicy:
    """
    Runs an attempt function until it commits, fails terminally, or the bound is hit.

    The attempt function receives the 1-based attempt number and must re-read
    everything it needs; nothing is carried between attempts.
    """

    def __init__(self, max_attempts: int = DEFAULT_MAX_ATTEMPTS) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts

    def _log_retry(self, retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        log.warning(
            f"[CONFLICT] attempt {retry_state.attempt_number}/{self.max_attempts} lost, retrying",
            extra={
                "attempt": retry_state.attempt_number,
                "max_attempts": self.max_attempts,
                "benefit_id": getattr(exc, "benefit_id", None),
            },
        )

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_none(),
            retry=retry_if_exception_type(VersionConflict),
            before_sleep=self._log_retry,
            reraise=True,
        )

    def run(self, attempt_fn: Callable[[int], T]) -> T:
        """
        Execute `attempt_fn` under the policy.

        Raises
        ------
        ConcurrentUpdateConflict
            When every attempt ended in a VersionConflict.
        """
        attempts = 0

        def _attempt() -> T:
            nonlocal attempts
            attempts += 1
            return attempt_fn(attempts)

        try:
            return self._retrying()(_attempt)
        except VersionConflict as exc:
            raise ConcurrentUpdateConflict(
                f"Gave up after {attempts} attempt(s): concurrent update on benefit "
                f"{exc.benefit_id}, try again",
                attempts=attempts,
                benefit_id=exc.benefit_id,
            ) from exc


__all__ = ["ConflictRetryPolicy", "DEFAULT_MAX_ATTEMPTS"]
