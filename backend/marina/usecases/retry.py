from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from ..domain.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def read_with_retry(
    read: Callable[[], Awaitable[T]],
    *,
    attempts: int = 3,
    delay: float = 0.2,
) -> T:
    """
    Run an idempotent read, retrying on StoreUnavailableError with linear backoff.
    Writes must never go through here.
    """
    if attempts < 1:
        raise ValueError("attempts must be >= 1")
    for attempt in range(1, attempts + 1):
        try:
            return await read()
        except StoreUnavailableError:
            if attempt == attempts:
                raise
            logger.warning("store unavailable, retrying read (attempt %d/%d)", attempt, attempts)
            await asyncio.sleep(delay * attempt)
    raise AssertionError("unreachable")


@dataclass(frozen=True)
class ReadPolicy:
    attempts: int = 3
    delay: float = 0.2

    async def run(self, read: Callable[[], Awaitable[T]]) -> T:
        return await read_with_retry(read, attempts=self.attempts, delay=self.delay)
