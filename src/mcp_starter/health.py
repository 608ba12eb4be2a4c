"""Liveness endpoint served next to the protocol transport."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Iterator
from datetime import datetime, timezone

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from mcp_starter import __version__
from mcp_starter.config import ServerConfig
from mcp_starter.logger import get_logger

logger = get_logger("health")

SERVER_NAME = "mcp-starter-server"


def build_health_app(config: ServerConfig) -> Starlette:
    """Create the Starlette application answering ``GET /health``."""

    async def health(_request: Request) -> JSONResponse:
        return JSONResponse(
            {
                "status": "ok",
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "server": {
                    "name": SERVER_NAME,
                    "version": __version__,
                    "environment": config.environment,
                },
            },
            headers={"Cache-Control": "no-cache, no-store, must-revalidate"},
        )

    return Starlette(routes=[Route("/health", health, methods=["GET"])])


class _EmbeddedServer(uvicorn.Server):
    """Uvicorn server that leaves process signals to the lifecycle manager."""

    def install_signal_handlers(self) -> None:
        return

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield


class HealthChecker:
    """Serve the health endpoint on ``host:port+1``."""

    def __init__(self, config: ServerConfig) -> None:
        self.config = config
        self.port = config.port + 1
        self._server: _EmbeddedServer | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def url(self) -> str:
        return f"http://{self.config.host}:{self.port}/health"

    async def start(self) -> None:
        """Start serving in a background task."""
        server_config = uvicorn.Config(
            build_health_app(self.config),
            host=self.config.host,
            port=self.port,
            log_level="warning",
            lifespan="off",
        )
        self._server = _EmbeddedServer(server_config)
        self._task = asyncio.create_task(self._server.serve())
        logger.info("Health check endpoint available at %s", self.url)

    async def stop(self) -> None:
        """Ask uvicorn to exit and wait for the background task."""
        if self._server is None or self._task is None:
            return
        self._server.should_exit = True
        await self._task
        self._server = None
        self._task = None
