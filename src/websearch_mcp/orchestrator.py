from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from loguru import logger

from websearch_mcp.clock import Clock, SystemClock
from websearch_mcp.errors import (
    AllProvidersFailed,
    InvalidArgument,
    ProviderError,
    SoftBlockDetected,
)
from websearch_mcp.preferred_sites import NoopEnhancer, QueryEnhancer
from websearch_mcp.search.search_provider import SearchProvider, SearchResult

MAX_RESULTS_LIMIT = 50
DEFAULT_MAX_RESULTS = 10
DATE_FILTERS = ("d", "w", "m", "y")

_DEFAULT_BASE_SUSPENSION_SECONDS = 20 * 60
_DEFAULT_MAX_SUSPENSION_MULTIPLIER = 6


@dataclass
class SuspensionState:
    suspended_until: float = 0.0
    suspension_count: int = 0


@dataclass(frozen=True)
class SuspensionStatus:
    suspended: bool
    suspended_until: float
    suspension_count: int
    remaining_seconds: float


@dataclass(frozen=True)
class SearchResponse:
    query: str
    total_results: int
    provider_used: str
    results: tuple[SearchResult, ...]
    notice: str | None = None

    def to_dict(self) -> dict:
        data = {
            "query": self.query,
            "searchProvider": self.provider_used,
            "totalResults": self.total_results,
            "results": [r.to_dict() for r in self.results],
        }
        if self.notice:
            data["notice"] = self.notice
        return data


@dataclass
class _Attempt:
    results: list[SearchResult] = field(default_factory=list)
    error: ProviderError | None = None


def suspension_duration(
    count: int,
    base_seconds: float = _DEFAULT_BASE_SUSPENSION_SECONDS,
    max_multiplier: int = _DEFAULT_MAX_SUSPENSION_MULTIPLIER,
) -> float:
    """Cooldown for the ``count``-th consecutive suspension: 20, 40, 80, 120, 120... minutes."""
    if count < 1:
        return 0.0
    return base_seconds * min(2 ** (count - 1), max_multiplier)


def validate_arguments(query: str, max_results: int, date_filter: str | None) -> None:
    if not query or not query.strip():
        raise InvalidArgument("Query parameter is required and cannot be empty")
    if max_results > MAX_RESULTS_LIMIT:
        raise InvalidArgument(f"Maximum results cannot exceed {MAX_RESULTS_LIMIT}")
    if max_results < 1:
        raise InvalidArgument("Maximum results must be at least 1")
    if date_filter is not None and date_filter not in DATE_FILTERS:
        raise InvalidArgument(f"dateFilter must be one of {', '.join(DATE_FILTERS)}")


class ProviderOrchestrator:
    """Routes each search to the primary provider, suspending it when it looks blocked.

    The primary is skipped entirely while suspended and the secondary answers
    instead. Suspension ends lazily: the deadline is checked at the start of
    every call, there is no timer. Any primary success clears the count.
    """

    def __init__(
        self,
        primary: SearchProvider,
        secondary: SearchProvider,
        enhancer: QueryEnhancer | None = None,
        *,
        clock: Clock | None = None,
        base_suspension_seconds: float = _DEFAULT_BASE_SUSPENSION_SECONDS,
        max_suspension_multiplier: int = _DEFAULT_MAX_SUSPENSION_MULTIPLIER,
    ) -> None:
        self._primary = primary
        self._secondary = secondary
        self._enhancer = enhancer or NoopEnhancer()
        self._clock = clock or SystemClock()
        self._base_suspension = base_suspension_seconds
        self._max_multiplier = max_suspension_multiplier
        self._state = SuspensionState()
        self._lock = asyncio.Lock()

    async def execute_search(
        self,
        query: str,
        max_results: int = DEFAULT_MAX_RESULTS,
        date_filter: str | None = None,
    ) -> SearchResponse:
        validate_arguments(query, max_results, date_filter)

        enhanced = self._enhancer.enhance(query)
        shown_query = query if enhanced == query else f"{query} (enhanced: {enhanced})"
        primary_name = self._primary.provider_name
        secondary_name = self._secondary.provider_name

        if await self._primary_suspended():
            status = self.suspension_status()
            logger.debug(
                f"{primary_name} suspended for {status.remaining_seconds / 60:.0f} more minutes, "
                f"using {secondary_name}"
            )
            results = await self._search_secondary(enhanced, max_results, date_filter, None)
            return self._response(
                shown_query,
                results,
                f"{secondary_name} ({primary_name} suspended)",
                self._suspension_notice(status),
            )

        attempt = await self._attempt_primary(enhanced, max_results, date_filter)
        if attempt.error is None:
            await self._record_primary_success()
            return self._response(shown_query, attempt.results, primary_name)

        status = await self._suspend_primary(attempt.error)
        results = await self._search_secondary(enhanced, max_results, date_filter, attempt.error)
        return self._response(
            shown_query,
            results,
            f"{secondary_name} (fallback after {primary_name} failure)",
            self._suspension_notice(status),
        )

    def suspension_status(self) -> SuspensionStatus:
        now = self._clock.now()
        until = self._state.suspended_until
        return SuspensionStatus(
            suspended=now < until,
            suspended_until=until,
            suspension_count=self._state.suspension_count,
            remaining_seconds=max(0.0, until - now),
        )

    async def _primary_suspended(self) -> bool:
        async with self._lock:
            return self._clock.now() < self._state.suspended_until

    async def _attempt_primary(
        self, query: str, max_results: int, date_filter: str | None
    ) -> _Attempt:
        try:
            results = await self._primary.search(query, max_results, date_filter)
        except ProviderError as ex:
            if isinstance(ex, SoftBlockDetected):
                logger.debug(f"Soft block from {self._primary.provider_name}: {ex.reason}")
            return _Attempt(error=ex)
        return _Attempt(results=results[:max_results])

    async def _record_primary_success(self) -> None:
        async with self._lock:
            if self._state.suspension_count > 0:
                logger.info(
                    f"{self._primary.provider_name} working again, "
                    f"clearing {self._state.suspension_count} previous suspension(s)"
                )
            self._state.suspension_count = 0

    async def _suspend_primary(self, error: ProviderError) -> SuspensionStatus:
        async with self._lock:
            now = self._clock.now()
            if now < self._state.suspended_until:
                # A concurrent call already opened this suspension window.
                return self.suspension_status()

            self._state.suspension_count += 1
            duration = suspension_duration(
                self._state.suspension_count, self._base_suspension, self._max_multiplier
            )
            self._state.suspended_until = now + duration
            logger.warning(
                f"{self._primary.provider_name} suspended for {duration / 60:.0f} minutes "
                f"(suspension #{self._state.suspension_count}): {error}"
            )
            return self.suspension_status()

    async def _search_secondary(
        self,
        query: str,
        max_results: int,
        date_filter: str | None,
        primary_error: ProviderError | None,
    ) -> list[SearchResult]:
        try:
            results = await self._secondary.search(query, max_results, date_filter)
        except ProviderError as ex:
            raise AllProvidersFailed(primary_error, ex) from ex
        return results[:max_results]

    def _suspension_notice(self, status: SuspensionStatus) -> str:
        minutes = max(1, round(status.remaining_seconds / 60))
        return (
            f"{self._primary.provider_name} suspended for {minutes} more minute(s) "
            f"(suspension #{status.suspension_count})"
        )

    @staticmethod
    def _response(
        query: str,
        results: list[SearchResult],
        provider_used: str,
        notice: str | None = None,
    ) -> SearchResponse:
        return SearchResponse(
            query=query,
            total_results=len(results),
            provider_used=provider_used,
            results=tuple(results),
            notice=notice,
        )
