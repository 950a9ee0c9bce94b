import asyncio
import unittest

from tests.search.provider_fixtures import RecordingTransport, brave_page, brave_snippet, make_governor
from websearch_mcp.errors import ProviderHttpError
from websearch_mcp.search.brave_provider import BraveProvider

_PAGE = brave_page(
    brave_snippet(
        "Understanding JavaScript Errors",
        "https://developer.mozilla.org/errors",
        "A reference for common javascript error messages and how to fix them.",
    ),
    brave_snippet("Relative Link", "/redirect/abc123", "Relative links point back at Brave."),
    brave_snippet("Too Short", "http://x", "Ignored because the URL is too short."),
)


class BraveProviderTests(unittest.TestCase):
    def _provider(self, transport: RecordingTransport) -> BraveProvider:
        return BraveProvider(make_governor(), transport=transport.build())

    def test_parses_snippets(self) -> None:
        transport = RecordingTransport(text=_PAGE)
        results = asyncio.run(self._provider(transport).search("javascript error", 10))

        self.assertEqual(2, len(results))
        self.assertEqual("Understanding JavaScript Errors", results[0].title)
        self.assertEqual("https://developer.mozilla.org/errors", results[0].url)
        self.assertIn("javascript", results[0].keywords)

    def test_relative_urls_are_made_absolute(self) -> None:
        transport = RecordingTransport(text=_PAGE)
        results = asyncio.run(self._provider(transport).search("javascript error", 10))
        self.assertEqual("https://search.brave.com/redirect/abc123", results[1].url)

    def test_falls_back_to_other_selectors(self) -> None:
        page = (
            '<html><body><div class="web-result"><h3><a href="https://example.com/page">'
            "Example</a></h3><p>Paragraph snippet used as description.</p></div></body></html>"
        )
        transport = RecordingTransport(text=page)
        results = asyncio.run(self._provider(transport).search("example", 10))
        self.assertEqual(1, len(results))
        self.assertIn("Paragraph snippet", results[0].summary)

    def test_site_group_parentheses_are_unwrapped(self) -> None:
        provider = BraveProvider(make_governor())
        query = "javascript error (site:stackoverflow.com OR site:developer.mozilla.org)"
        formatted = provider.format_query(query)
        self.assertEqual("javascript error site:stackoverflow.com OR site:developer.mozilla.org", formatted)

    def test_other_parentheses_are_kept(self) -> None:
        provider = BraveProvider(make_governor())
        self.assertEqual("f(x) derivative", provider.format_query("f(x) derivative"))

    def test_enhanced_query_sent_with_site_targets(self) -> None:
        transport = RecordingTransport(text=_PAGE)
        query = "react hooks (site:github.com OR site:react.dev)"
        asyncio.run(self._provider(transport).search(query, 5, "m"))

        params = transport.requests[0].url.params
        self.assertIn("site:github.com", params["q"])
        self.assertIn("site:react.dev", params["q"])
        self.assertEqual("pm", params["tf"])

    def test_http_error(self) -> None:
        transport = RecordingTransport(status_code=503)
        with self.assertRaises(ProviderHttpError) as ctx:
            asyncio.run(self._provider(transport).search("javascript error", 5))
        self.assertTrue(ctx.exception.is_blocking_signal)

    def test_large_empty_body_is_plain_empty_result(self) -> None:
        transport = RecordingTransport(text="<html><body>" + "x" * 20_000 + "</body></html>")
        results = asyncio.run(self._provider(transport).search("javascript error", 5))
        self.assertEqual([], results)


if __name__ == "__main__":
    unittest.main()
