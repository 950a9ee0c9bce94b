from __future__ import annotations

import re
from typing import Any

from bs4 import BeautifulSoup

from websearch_mcp.content_extractor import extract_keywords, summarize_snippet
from websearch_mcp.search.html_search_provider import HtmlSearchProvider
from websearch_mcp.search.search_provider import SearchResult

_BRAVE_ORIGIN = "https://search.brave.com"
_RESULT_SELECTORS = (".snippet", ".web-result", ".result")
_TITLE_SELECTOR = "h3 a, .title a, .result-title a, a[href]"
_SNIPPET_SELECTOR = ".snippet-description, .description, .snippet-content"
_TIME_FILTERS = {"d": "pd", "w": "pw", "m": "pm", "y": "py"}

# "(site:a OR site:b)" -> "site:a OR site:b"
_SITE_GROUP = re.compile(r"\(\s*(site:[^()]*?)\s*\)")


class BraveProvider(HtmlSearchProvider):
    name = "Brave"
    search_url = f"{_BRAVE_ORIGIN}/search"

    def format_query(self, query: str) -> str:
        return _SITE_GROUP.sub(r"\1", query)

    def build_params(self, query: str, date_filter: str | None) -> dict[str, Any]:
        params: dict[str, Any] = {"q": query}
        if date_filter in _TIME_FILTERS:
            params["tf"] = _TIME_FILTERS[date_filter]
        return params

    def parse_results(self, html: str, max_results: int) -> list[SearchResult]:
        soup = BeautifulSoup(html, "lxml")
        results: list[SearchResult] = []

        for selector in _RESULT_SELECTORS:
            if results:
                break
            for element in soup.select(selector):
                if len(results) >= max_results:
                    break

                link = element.select_one(_TITLE_SELECTOR)
                if link is None:
                    continue
                title = link.get_text(" ", strip=True)
                url = link.get("href", "").strip()
                if url.startswith("/"):
                    url = f"{_BRAVE_ORIGIN}{url}"
                if not title or len(url) < 10:
                    continue

                snippet = " ".join(
                    tag.get_text(" ", strip=True) for tag in element.select(_SNIPPET_SELECTOR)
                ).strip()
                if not snippet:
                    paragraph = element.find("p")
                    snippet = paragraph.get_text(" ", strip=True) if paragraph else ""

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
        if self.is_large_body(html) and "captcha" in html.lower():
            return "CAPTCHA challenge"
        return None
