"""Retry wrapper for network operations."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

from rental_inspection.errors import UploadTimeout

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


@dataclass
class UploadRetrier:
    """Runs an operation with a per-attempt deadline and exponential backoff."""

    max_attempts: int = 3
    attempt_timeout: float = 30.0
    backoff_unit: float = 1.0
    sleep: Sleep = field(default=asyncio.sleep)

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run the operation until it succeeds or attempts are exhausted.

        After failed attempt ``n`` the retrier waits ``2**n`` backoff units.
        The error of the final attempt is re-raised unchanged.
        """
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        attempt = 1
        while True:
            try:
                return await self._attempt(operation)
            except Exception as exc:
                if attempt >= self.max_attempts:
                    logger.error(
                        "Operation failed after %d attempts: %s", attempt, exc
                    )
                    raise
                delay = (2**attempt) * self.backoff_unit
                logger.warning(
                    "Attempt %d/%d failed (%s), retrying in %.1fs",
                    attempt,
                    self.max_attempts,
                    exc,
                    delay,
                )
                await self.sleep(delay)
                attempt += 1

    async def _attempt(self, operation: Callable[[], Awaitable[T]]) -> T:
        try:
            return await asyncio.wait_for(operation(), timeout=self.attempt_timeout)
        except TimeoutError as exc:
            raise UploadTimeout(
                f"Upload timed out after {self.attempt_timeout:g}s"
            ) from exc


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    attempt_timeout: float = 30.0,
) -> T:
    """Run an operation with the default retry policy."""
    retrier = UploadRetrier(max_attempts=max_attempts, attempt_timeout=attempt_timeout)
    return await retrier.run(operation)
