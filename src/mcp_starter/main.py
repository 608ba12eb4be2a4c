"""Entry point for the MCP starter server."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

from fastmcp import FastMCP

from mcp_starter.config import ConfigurationError, ServerConfig, validate_config
from mcp_starter.fastmcp_adapter import build_fastmcp_app
from mcp_starter.health import HealthChecker
from mcp_starter.lifecycle import Lifecycle
from mcp_starter.logger import get_logger, initialize_logger
from mcp_starter.server import Dispatcher

logger = get_logger("main")


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(description="MCP starter server")
    parser.add_argument(
        "--catalog",
        action="store_true",
        help="Print the tool and resource catalog as JSON and exit.",
    )
    parser.add_argument(
        "--transport",
        choices=["stdio", "http", "sse"],
        default="stdio",
        help="Transport used to serve the protocol.",
    )
    parser.add_argument("--host", default=None, help="Bind host for HTTP transports.")
    parser.add_argument("--port", type=int, default=None, help="Bind port for HTTP transports.")
    parser.add_argument("--path", default="/mcp", help="Endpoint path for HTTP transports.")
    parser.add_argument(
        "--shutdown-timeout",
        type=float,
        default=5.0,
        help="Seconds to wait for the transport to close on shutdown.",
    )
    return parser


def transport_options(args: argparse.Namespace, config: ServerConfig) -> dict[str, Any]:
    """Translate CLI arguments into FastMCP transport keyword arguments."""
    if args.transport == "stdio":
        return {}
    return {
        "host": args.host or config.host,
        "port": args.port or config.port,
        "path": args.path,
    }


async def serve(app: FastMCP, config: ServerConfig, args: argparse.Namespace) -> int:
    """Run the server until its transport closes or a signal arrives."""
    lifecycle = Lifecycle(shutdown_timeout=args.shutdown_timeout)
    logger.info(
        "Starting MCP server (transport=%s, environment=%s, log_level=%s)",
        args.transport,
        config.environment,
        config.log_level,
    )
    if config.enable_health_check:
        checker = HealthChecker(config)
        try:
            await checker.start()
        except Exception as exc:
            logger.error("Failed to start health checker", exc_info=exc)
            return 1
        lifecycle.add_cleanup(checker.stop)

    options = transport_options(args, config)
    return await lifecycle.run(lambda: app.run_async(transport=args.transport, **options))


def main(argv: list[str] | None = None) -> int:
    """Validate configuration, build the server and run it."""
    args = build_parser().parse_args(argv)

    try:
        config = validate_config()
    except ConfigurationError as exc:
        print(f"Failed to initialize MCP server: {exc}", file=sys.stderr)
        return 1
    initialize_logger(config)

    dispatcher = Dispatcher()
    if args.catalog:
        print(json.dumps(asyncio.run(dispatcher.catalog()), indent=2))
        return 0

    try:
        app = build_fastmcp_app(dispatcher)
        return asyncio.run(serve(app, config, args))
    except Exception as exc:
        logger.error("Failed to start MCP server", exc_info=exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
