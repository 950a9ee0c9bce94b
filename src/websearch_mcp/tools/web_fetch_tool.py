import json
from typing import Any
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup
from loguru import logger
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from websearch_mcp.content_extractor import extract_domain, extract_page_keywords, summarize_page
from websearch_mcp.html_utilities import extract_main_content, extract_title

_MAX_RESPONSE_BYTES = 2_000_000  # 2 MB
_TIMEOUT_SECONDS = 10
_MAX_REDIRECTS = 5
_MAX_ATTEMPTS = 3

_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)

_HEADERS = {
    "User-Agent": _USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate",
}


def _on_retry(retry_state) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    reason = type(exc).__name__ if exc else "Unknown"
    logger.debug(f"Fetch {reason}. Retrying (attempt {retry_state.attempt_number}/{_MAX_ATTEMPTS})...")


class WebFetchTool:
    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._transport = transport

    @property
    def name(self) -> str:
        return "fetch"

    @property
    def title(self) -> str:
        return "URL Content Fetcher"

    @property
    def description(self) -> str:
        return (
            "Fetch and extract content from a URL. Retrieves an HTML page, extracts "
            "its title and main text, and returns clean readable content with "
            "keywords and a summary. Useful for reading pages found through search results."
        )

    async def execute(self, tool_input: dict[str, Any]) -> str:
        url = str(tool_input.get("url") or "").strip()
        if urlparse(url).scheme not in ("http", "https") or not urlparse(url).netloc:
            return "Error: Valid URL parameter is required"

        try:
            response = await self._get(url)
        except httpx.TimeoutException:
            return "Error: Fetch failed: Request timeout"
        except httpx.TooManyRedirects:
            return f"Error: Fetch failed: Too many redirects (max {_MAX_REDIRECTS})"
        except httpx.HTTPError as ex:
            return f"Error: Fetch failed: {ex}"

        if not response.is_success:
            logger.debug(f"Fetch failed for URL \"{url}\": HTTP {response.status_code} {response.reason_phrase}")
            return f"Error: Fetch failed: HTTP {response.status_code}: {response.reason_phrase}"

        content_type = response.headers.get("content-type", "")
        if "text/html" not in content_type:
            return f"Error: Fetch failed: Unsupported content type: {content_type}"

        if len(response.content) > _MAX_RESPONSE_BYTES:
            return (
                f"Error: Fetch failed: Response too large ({len(response.content):,} bytes, "
                f"max {_MAX_RESPONSE_BYTES:,} bytes)"
            )

        html = response.text
        soup = BeautifulSoup(html, "lxml")
        title = extract_title(soup)
        content = extract_main_content(soup)

        result = {
            "url": url,
            "title": title,
            "content": content,
            "summary": summarize_page(title, content, url),
            "keywords": extract_page_keywords(title, content),
            "metadata": {
                "domain": extract_domain(url),
                "contentType": content_type,
                "contentLength": len(html),
                "lastModified": response.headers.get("last-modified"),
            },
        }
        return json.dumps(result, indent=2)

    @retry(
        retry=retry_if_exception_type((httpx.ConnectError, httpx.ReadError, httpx.RemoteProtocolError)),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        stop=stop_after_attempt(_MAX_ATTEMPTS),
        before_sleep=_on_retry,
        reraise=True,
    )
    async def _get(self, url: str) -> httpx.Response:
        async with httpx.AsyncClient(
            headers=_HEADERS,
            timeout=_TIMEOUT_SECONDS,
            follow_redirects=True,
            max_redirects=_MAX_REDIRECTS,
            transport=self._transport,
        ) as client:
            return await client.get(url)
