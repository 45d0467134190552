"""
Gmail MCP server entrypoint.

Run:
    python main.py                                   # stdio
    python main.py --transport streamable-http --port 8000
"""

import argparse
import logging
import sys

from dotenv import load_dotenv

# .env must be loaded before core.config reads the environment
load_dotenv()

from core import config  # noqa: E402
from core.server import server  # noqa: E402

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    # stdout carries the stdio transport, so logs go to stderr
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    logging.getLogger("googleapiclient.discovery_cache").setLevel(logging.ERROR)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Gmail MCP Server")
    parser.add_argument(
        "--transport",
        choices=config.VALID_TRANSPORTS,
        default=config.GMAIL_MCP_TRANSPORT,
        help="Transport protocol to use",
    )
    parser.add_argument(
        "--host", default=config.GMAIL_MCP_HOST, help="Host to bind HTTP server to"
    )
    parser.add_argument(
        "--port", type=int, default=config.GMAIL_MCP_PORT, help="Port for HTTP server"
    )
    args = parser.parse_args(argv)
    # argparse does not check defaults against choices
    if args.transport not in config.VALID_TRANSPORTS:
        parser.error(
            f"Invalid transport '{args.transport}'. "
            f"Must be one of: {', '.join(config.VALID_TRANSPORTS)}"
        )
    return args


def main(argv=None) -> None:
    args = parse_args(argv)
    configure_logging(config.GMAIL_MCP_LOG_LEVEL)

    try:
        import gmail.gmail_tools  # noqa: F401  registers the tools

        logger.info(f"Starting Gmail MCP server ({args.transport})")
        if args.transport == "streamable-http":
            server.run(transport="streamable-http", host=args.host, port=args.port)
        else:
            server.run(transport="stdio")
    except KeyboardInterrupt:
        logger.info("Server shutdown requested")
    except Exception as e:
        logger.exception(f"Server failed to start: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
