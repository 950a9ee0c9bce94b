import sys

from dotenv import load_dotenv
from loguru import logger

from websearch_mcp.app_config import (
    apply_cli_overrides,
    config_path_from_args,
    load_json_config,
    parse_app_config,
)
from websearch_mcp.bootstrap import bootstrap_runtime
from websearch_mcp.server import create_server


def main(argv: list[str] | None = None) -> None:
    load_dotenv()

    args = sys.argv[1:] if argv is None else argv
    try:
        config = apply_cli_overrides(load_json_config(config_path_from_args(args)), args)
        app = parse_app_config(config)
    except ValueError as ex:
        logger.error(f"Invalid configuration: {ex}")
        sys.exit(1)

    runtime = bootstrap_runtime(app)
    mcp = create_server(runtime, host=app.host, port=app.port)

    if runtime.log_descriptions:
        logger.info(f"Logging: {', '.join(runtime.log_descriptions)}")
    if app.debug:
        logger.info("Debug mode enabled")

    if app.transport == "stdio":
        logger.info("MCP web search server running on stdio")
        mcp.run(transport="stdio")
    else:
        logger.info(f"MCP web search server running on http://{app.host}:{app.port}/mcp")
        logger.info("Use --stdio to run in stdio mode, --port=<number> to change the port, --debug for debug logging")
        mcp.run(transport="streamable-http")


if __name__ == "__main__":
    main()
