"""Entry point for arc-data MCP server."""

import argparse
import asyncio
import logging
import sys

from arc_data import __version__
from arc_data.config.settings import Settings
from arc_data.server import create_server, initialize_services, shutdown_services


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="arc-data",
        description="ARC data - Import and export of REST client data via MCP",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser.parse_args()


async def main() -> None:
    """Main entry point for the MCP server."""
    settings = Settings()

    # stdout carries the MCP stdio transport
    logging.basicConfig(
        level=settings.log_level.upper(),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    await initialize_services(settings)

    mcp = create_server()

    try:
        await mcp.run_stdio_async()
    finally:
        await shutdown_services()


def cli() -> None:
    """CLI entry point."""
    parse_args()

    asyncio.run(main())


if __name__ == "__main__":
    cli()
