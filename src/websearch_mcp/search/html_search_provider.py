from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from websearch_mcp.errors import ProviderHttpError, ProviderTransportError, SoftBlockDetected
from websearch_mcp.request_governor import RequestGovernor
from websearch_mcp.search.search_provider import SearchResult

_DEFAULT_TIMEOUT_SECONDS = 30.0
_DEFAULT_SOFT_BLOCK_MIN_CHARS = 10_000

_STATUS_HINTS = {
    429: "rate limited (Too Many Requests)",
    503: "service unavailable (possible rate limiting)",
    403: "access forbidden (possible IP blocking)",
}


class HtmlSearchProvider:
    """One paced round-trip against a search engine's HTML results page.

    Subclasses supply the endpoint, query parameters and markup parsing.
    Every request is admitted by the shared ``RequestGovernor`` and jittered
    before it is sent.
    """

    name = ""
    search_url = ""

    def __init__(
        self,
        governor: RequestGovernor,
        *,
        timeout_seconds: float = _DEFAULT_TIMEOUT_SECONDS,
        soft_block_min_chars: int = _DEFAULT_SOFT_BLOCK_MIN_CHARS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._governor = governor
        self._timeout = timeout_seconds
        self._soft_block_min_chars = soft_block_min_chars
        self._transport = transport

    @property
    def provider_name(self) -> str:
        return self.name

    async def search(
        self, query: str, max_results: int, date_filter: str | None = None
    ) -> list[SearchResult]:
        submitted = self.format_query(query)
        if submitted != query:
            logger.debug(f'Formatted query for {self.name}: "{query}" -> "{submitted}"')
        params = self.build_params(submitted, date_filter)

        await self._governor.admit()
        await self._governor.jitter()

        html = await self._fetch(params)
        results = self.parse_results(html, max_results)
        logger.debug(f"Extracted {len(results)} results from {self.name} ({len(html):,} chars)")

        if not results:
            reason = self.detect_soft_block(html)
            if reason:
                logger.debug(f"Possible blocking by {self.name} for query \"{query}\": {reason}")
                raise SoftBlockDetected(self.name, len(html), reason)
        return results

    def format_query(self, query: str) -> str:
        return query

    def build_params(self, query: str, date_filter: str | None) -> dict[str, Any]:
        return {"q": query}

    def parse_results(self, html: str, max_results: int) -> list[SearchResult]:
        raise NotImplementedError

    def detect_soft_block(self, html: str) -> str | None:
        """Explain why an empty result page looks like a block, or return None."""
        return None

    def is_large_body(self, html: str) -> bool:
        return len(html) > self._soft_block_min_chars

    async def _fetch(self, params: dict[str, Any]) -> str:
        headers = {
            "User-Agent": self._governor.identity(),
            **self._governor.extra_headers(),
        }
        logger.debug(f"{self.name} search: {self.search_url} params={params}")

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = await client.get(self.search_url, params=params, headers=headers)
        except httpx.TimeoutException as ex:
            raise ProviderTransportError(self.name, f"timed out after {self._timeout:.0f}s") from ex
        except httpx.HTTPError as ex:
            raise ProviderTransportError(self.name, str(ex) or type(ex).__name__) from ex

        if not response.is_success:
            hint = _STATUS_HINTS.get(response.status_code)
            if hint:
                logger.debug(f"{self.name} HTTP {response.status_code}: {hint}")
            else:
                logger.debug(f"{self.name} search failed: HTTP {response.status_code} {response.reason_phrase}")
            raise ProviderHttpError(self.name, response.status_code, response.reason_phrase)

        return response.text
