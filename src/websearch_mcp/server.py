from __future__ import annotations

from typing import Annotated, Literal

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from websearch_mcp.bootstrap import AppRuntime
from websearch_mcp.tool import Tool

SERVER_NAME = "websearch-mcp"


def _tool_options(tool: Tool) -> dict[str, str]:
    return {"name": tool.name, "title": tool.title, "description": tool.description}


def create_server(runtime: AppRuntime, *, host: str = "127.0.0.1", port: int = 3000) -> FastMCP:
    mcp = FastMCP(
        SERVER_NAME,
        host=host,
        port=port,
        stateless_http=True,
        json_response=True,
    )
    search_tool = runtime.search_tool
    fetch_tool = runtime.fetch_tool

    @mcp.tool(**_tool_options(search_tool))
    async def search(
        query: Annotated[
            str,
            Field(description="Search query string - will be automatically enhanced with relevant site: operators if applicable"),
        ],
        maxResults: Annotated[
            int,
            Field(description="Maximum number of results to return (default: 10, max: 50)"),
        ] = 10,
        dateFilter: Annotated[
            Literal["d", "w", "m", "y"] | None,
            Field(description="Filter results by date: d=past day, w=past week, m=past month, y=past year"),
        ] = None,
    ) -> str:
        return await search_tool.execute(
            {"query": query, "maxResults": maxResults, "dateFilter": dateFilter}
        )

    @mcp.tool(**_tool_options(fetch_tool))
    async def fetch(
        url: Annotated[str, Field(description="URL to fetch content from")],
    ) -> str:
        return await fetch_tool.execute({"url": url})

    return mcp
