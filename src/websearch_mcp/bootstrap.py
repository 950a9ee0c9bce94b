from __future__ import annotations

from dataclasses import dataclass

from websearch_mcp.app_config import AppConfig
from websearch_mcp.logging_config import setup_logging
from websearch_mcp.orchestrator import ProviderOrchestrator
from websearch_mcp.preferred_sites import PreferredSitesEnhancer
from websearch_mcp.request_governor import RequestGovernor
from websearch_mcp.search.brave_provider import BraveProvider
from websearch_mcp.search.duckduckgo_provider import DuckDuckGoProvider
from websearch_mcp.tools.web_fetch_tool import WebFetchTool
from websearch_mcp.tools.web_search_tool import WebSearchTool


@dataclass
class AppRuntime:
    governor: RequestGovernor
    orchestrator: ProviderOrchestrator
    search_tool: WebSearchTool
    fetch_tool: WebFetchTool
    log_descriptions: list[str]


def bootstrap_runtime(app: AppConfig) -> AppRuntime:
    """Build the process-wide search stack. Call once at startup."""
    log_descriptions = setup_logging(
        level=app.effective_log_level,
        consumers=app.log_consumers,
        force_level=app.debug,
    )

    governor = RequestGovernor(
        min_interval_seconds=app.min_request_interval_ms / 1000,
        max_requests_per_window=app.max_requests_per_minute,
        max_jitter_seconds=app.max_jitter_ms / 1000,
    )
    provider_kwargs = {
        "timeout_seconds": app.request_timeout_seconds,
        "soft_block_min_chars": app.soft_block_min_body_chars,
    }
    orchestrator = ProviderOrchestrator(
        DuckDuckGoProvider(governor, **provider_kwargs),
        BraveProvider(governor, **provider_kwargs),
        PreferredSitesEnhancer(app.preferred_sites_path),
        base_suspension_seconds=app.suspension_base_minutes * 60,
        max_suspension_multiplier=app.max_suspension_multiplier,
    )

    return AppRuntime(
        governor=governor,
        orchestrator=orchestrator,
        search_tool=WebSearchTool(orchestrator),
        fetch_tool=WebFetchTool(),
        log_descriptions=log_descriptions,
    )
