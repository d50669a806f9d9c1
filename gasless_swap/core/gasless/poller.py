"""Bounded fixed-delay polling of the relay's trade status."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional

import structlog

from .models import PollResult, StatusSnapshot


SleepFn = Callable[[float], Awaitable[None]]
FetchStatusFn = Callable[[], Awaitable[StatusSnapshot]]

logger = structlog.stdlib.get_logger("gasless.poller")


class StatusPoller:
    """
    Polls until the relay reports ``confirmed`` or the attempt budget runs out.

    Each tick sleeps ``interval_s`` and then performs exactly one fetch.
    Exhausting the budget returns an unconfirmed result instead of raising.
    """

    def __init__(
        self,
        interval_s: float = 2.0,
        max_attempts: int = 60,
        sleep: Optional[SleepFn] = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.interval_s = interval_s
        self.max_attempts = max_attempts
        self._sleep = sleep or asyncio.sleep

    async def poll(self, fetch_status: FetchStatusFn) -> PollResult:
        attempts = 0
        snapshot: Optional[StatusSnapshot] = None

        while attempts < self.max_attempts:
            attempts += 1
            await self._sleep(self.interval_s)

            snapshot = await fetch_status()
            logger.info("status_poll", attempt=attempts, status=snapshot.status)

            if snapshot.is_confirmed:
                return PollResult(confirmed=True, attempts=attempts, snapshot=snapshot)

        logger.warning("status_poll_exhausted", attempts=attempts)
        return PollResult(confirmed=False, attempts=attempts, snapshot=snapshot)
