from __future__ import annotations

import asyncio
import random
from collections import deque
from dataclasses import dataclass, field

from loguru import logger

from websearch_mcp.clock import Clock, SystemClock

SEARCH_USER_AGENTS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:120.0) Gecko/20100101 Firefox/120.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.1 Safari/605.1.15",
)

_BASE_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate, br",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
}


@dataclass
class RequestLedger:
    last_request_timestamp: float = 0.0
    recent_request_timestamps: deque[float] = field(default_factory=deque)
    request_counter: int = 0


class RequestGovernor:
    """Paces and varies every outbound search request.

    One instance is shared by all providers for the lifetime of the process.
    ``admit()`` is serialized with a lock so the sliding-window cap holds
    across concurrent callers; ``jitter()`` is not.
    """

    def __init__(
        self,
        *,
        clock: Clock | None = None,
        rng: random.Random | None = None,
        min_interval_seconds: float = 2.0,
        max_requests_per_window: int = 10,
        window_seconds: float = 60.0,
        window_margin_seconds: float = 1.0,
        max_jitter_seconds: float = 3.0,
        user_agents: tuple[str, ...] = SEARCH_USER_AGENTS,
    ) -> None:
        self._clock = clock or SystemClock()
        self._rng = rng or random.Random()
        self._min_interval = min_interval_seconds
        self._max_requests = max_requests_per_window
        self._window = window_seconds
        self._window_margin = window_margin_seconds
        self._max_jitter = max_jitter_seconds
        self._user_agents = user_agents
        self._ledger = RequestLedger()
        self._lock = asyncio.Lock()

    @property
    def ledger(self) -> RequestLedger:
        return self._ledger

    async def admit(self) -> None:
        async with self._lock:
            now = self._clock.now()
            self._evict_expired(now)

            window_wait = 0.0
            recent = self._ledger.recent_request_timestamps
            if len(recent) >= self._max_requests:
                window_wait = recent[0] + self._window - now + self._window_margin
                logger.debug(
                    f"Rate limit protection: waiting {window_wait:.1f}s "
                    f"({len(recent)} requests in last {self._window:.0f}s)"
                )

            spacing_wait = 0.0
            since_last = now - self._ledger.last_request_timestamp
            if since_last < self._min_interval:
                spacing_wait = self._min_interval - since_last
                logger.debug(f"Minimum delay protection: waiting {spacing_wait:.1f}s")

            if window_wait > 0 or spacing_wait > 0:
                await self._clock.sleep(max(window_wait, 0.0) + spacing_wait)

            admitted_at = self._clock.now()
            self._evict_expired(admitted_at)
            self._ledger.last_request_timestamp = admitted_at
            recent.append(admitted_at)
            self._ledger.request_counter += 1

            logger.debug(
                f"Request #{self._ledger.request_counter} approved "
                f"({len(recent)} in last {self._window:.0f}s)"
            )

    async def jitter(self) -> None:
        delay = self._rng.random() * self._max_jitter
        logger.debug(f"Adding random delay: {delay:.2f}s")
        await self._clock.sleep(delay)

    def identity(self) -> str:
        return self._user_agents[self._ledger.request_counter % len(self._user_agents)]

    def extra_headers(self) -> dict[str, str]:
        headers = dict(_BASE_HEADERS)
        if self._rng.random() > 0.5:
            headers["DNT"] = "1"
        if self._rng.random() > 0.7:
            headers["Cache-Control"] = "max-age=0"
        return headers

    def _evict_expired(self, now: float) -> None:
        recent = self._ledger.recent_request_timestamps
        cutoff = now - self._window
        while recent and recent[0] < cutoff:
            recent.popleft()
