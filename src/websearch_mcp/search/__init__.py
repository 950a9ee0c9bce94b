from websearch_mcp.search.brave_provider import BraveProvider
from websearch_mcp.search.duckduckgo_provider import DuckDuckGoProvider
from websearch_mcp.search.html_search_provider import HtmlSearchProvider
from websearch_mcp.search.search_provider import SearchProvider, SearchResult

__all__ = [
    "BraveProvider",
    "DuckDuckGoProvider",
    "HtmlSearchProvider",
    "SearchProvider",
    "SearchResult",
]
