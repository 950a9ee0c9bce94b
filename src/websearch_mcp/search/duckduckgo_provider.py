from __future__ import annotations

from typing import Any
from urllib.parse import parse_qs, urlparse

from bs4 import BeautifulSoup

from websearch_mcp.content_extractor import extract_keywords, summarize_snippet
from websearch_mcp.search.html_search_provider import HtmlSearchProvider
from websearch_mcp.search.search_provider import SearchResult

_NO_RESULTS_MARKERS = ('class="no-results"', "No results found", "No  results.")


def resolve_result_url(href: str) -> str:
    """Unwrap DuckDuckGo's ``/l/?uddg=`` redirect links."""
    if href.startswith("//"):
        href = f"https:{href}"
    if "uddg=" in href:
        target = parse_qs(urlparse(href).query).get("uddg")
        if target:
            return target[0]
    return href


class DuckDuckGoProvider(HtmlSearchProvider):
    name = "DuckDuckGo"
    search_url = "https://html.duckduckgo.com/html/"

    def build_params(self, query: str, date_filter: str | None) -> dict[str, Any]:
        params: dict[str, Any] = {"q": query, "b": ""}
        if date_filter:
            params["df"] = date_filter
        return params

    def parse_results(self, html: str, max_results: int) -> list[SearchResult]:
        soup = BeautifulSoup(html, "lxml")
        results: list[SearchResult] = []

        for element in soup.select(".result"):
            if len(results) >= max_results:
                break
            if "result--ad" in (element.get("class") or []):
                continue

            link = element.select_one(".result__title a")
            if link is None:
                continue
            title = link.get_text(strip=True)
            url = resolve_result_url(link.get("href", "").strip())
            if not title or not url:
                continue

            snippet_tag = element.select_one(".result__snippet")
            snippet = snippet_tag.get_text(" ", strip=True) if snippet_tag else ""

            results.append(
                SearchResult(
                    title=title,
                    url=url,
                    keywords=tuple(extract_keywords(title, snippet)),
                    summary=summarize_snippet(title, snippet, url),
                )
            )

        return results

    def detect_soft_block(self, html: str) -> str | None:
        if not self.is_large_body(html):
            return None

        lowered = html.lower()
        if "captcha" in lowered or "verify you are human" in lowered:
            return "CAPTCHA challenge"
        if "too many requests" in lowered:
            return "rate limit message"
        if any(marker in html for marker in _NO_RESULTS_MARKERS):
            return None
        if "<title>DuckDuckGo</title>" in html:
            return "homepage served instead of results"
        if 'class="result' not in html:
            return "no result markers in response"
        return "result markup not recognised"
