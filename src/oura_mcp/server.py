"""Oura MCP Server - Main entry point."""

import argparse
import logging
import sys

import uvicorn
from dotenv import load_dotenv
from pydantic import ValidationError

from .config import OuraAppConfig
from .context import create_context
from .http_app import create_app

# Load environment variables
load_dotenv()

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def load_config() -> OuraAppConfig:
    """Load configuration or exit with a readable message."""
    try:
        return OuraAppConfig()
    except ValidationError as e:
        for error in e.errors():
            print(f"Configuration error: {error['msg']}", file=sys.stderr)
        sys.exit(1)


def main():
    """Main entry point for the Oura MCP server."""
    parser = argparse.ArgumentParser(description="Oura MCP Server")
    parser.add_argument("--host", type=str, default=None, help="Bind address (OURA_MCP_HOST)")
    parser.add_argument("--port", type=int, default=None, help="Bind port (OURA_MCP_PORT)")
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (LOG_LEVEL, default INFO)",
    )
    args = parser.parse_args()

    config = load_config()
    level = args.log_level or config.log_level.upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)

    app = create_app(create_context(config))
    uvicorn.run(
        app,
        host=args.host or config.oura_mcp_host,
        port=args.port or config.oura_mcp_port,
        log_level=level.lower(),
    )


if __name__ == "__main__":
    main()
