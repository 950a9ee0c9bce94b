import json
from typing import Any

from loguru import logger

from websearch_mcp.errors import AllProvidersFailed, InvalidArgument
from websearch_mcp.orchestrator import DEFAULT_MAX_RESULTS, MAX_RESULTS_LIMIT, ProviderOrchestrator


class WebSearchTool:
    def __init__(self, orchestrator: ProviderOrchestrator) -> None:
        self._orchestrator = orchestrator

    @property
    def name(self) -> str:
        return "search"

    @property
    def title(self) -> str:
        return "Web Search"

    @property
    def description(self) -> str:
        return (
            "Intelligent web search using DuckDuckGo as the primary search engine with "
            "Brave Search as fallback.\n\n"
            "Features:\n"
            "- Automatic query enhancement with site: operators from the preferred sites "
            "configuration (GitHub, StackOverflow, MDN, etc.)\n"
            "- Rate limiting protection with request spacing and header rotation\n"
            "- Automatic fallback to Brave Search when DuckDuckGo is rate limited or blocked\n"
            "- Results with extracted keywords and summaries\n\n"
            "Results include title, URL, keywords, summary and the search provider used. "
            f"Handles up to {MAX_RESULTS_LIMIT} results with optional date filtering."
        )

    async def execute(self, tool_input: dict[str, Any]) -> str:
        query = str(tool_input.get("query") or "")
        date_filter = tool_input.get("dateFilter") or None

        raw_max = tool_input.get("maxResults")
        try:
            max_results = DEFAULT_MAX_RESULTS if raw_max is None else int(raw_max)
        except (TypeError, ValueError):
            return "Error: maxResults must be a number"

        try:
            response = await self._orchestrator.execute_search(query, max_results, date_filter)
        except InvalidArgument as ex:
            return f"Error: {ex}"
        except AllProvidersFailed as ex:
            logger.error(f"search error: {ex}")
            return f"Error: Search failed: {ex}"

        return json.dumps(response.to_dict(), indent=2)
