"""
Web Server Module for routepause.

This module provides the WebServer class that creates and manages the
FastAPI application serving the GUI shell's queries.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from routepause import __version__
from routepause.web.routes.api import register_api_routes

if TYPE_CHECKING:
    from routepause.core.coordinator import PauseResumeCoordinator
    from routepause.core.events import EventLog
    from routepause.player.registry import PlayerRegistry

logger = logging.getLogger(__name__)


class WebServer:
    """
    FastAPI-based web server for routepause.

    Exposes which players are known and which of them are currently paused
    by the system. The only commands are the resume retry and the
    auto-pause switch.
    """

    def __init__(
        self,
        coordinator: PauseResumeCoordinator,
        player_registry: PlayerRegistry,
        managed_device: str = "",
        event_log: EventLog | None = None,
    ) -> None:
        """
        Initialize the WebServer.

        Args:
            coordinator: The pause/resume coordinator
            player_registry: Registry of known players
            managed_device: Name of the managed output device
            event_log: Recent events served at /api/events
        """
        self.coordinator = coordinator
        self.player_registry = player_registry
        self.managed_device = managed_device
        self.event_log = event_log

        self.app = FastAPI(
            title="routepause",
            description="Pauses media players while a managed output device is active",
            version=__version__,
        )

        # Local UI shells load from file:// or arbitrary ports.
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["GET", "POST", "PUT"],
            allow_headers=["*"],
        )

        # Server state
        self._server: uvicorn.Server | None = None
        self._serve_task: asyncio.Task[None] | None = None
        self._host = "127.0.0.1"
        self._port = 9077

        self._register_routes()

    def _register_routes(self) -> None:
        """Register all routes with the FastAPI app."""

        @self.app.get("/health")
        async def health_check() -> dict[str, str]:
            """Health check endpoint."""
            return {"status": "ok", "server": "routepause"}

        register_api_routes(
            self.app,
            coordinator=self.coordinator,
            player_registry=self.player_registry,
            managed_device=self.managed_device,
            event_log=self.event_log,
        )

    async def start(self, host: str = "127.0.0.1", port: int = 9077) -> None:
        """
        Start the web server in the background.

        Args:
            host: Host address to bind to
            port: Port to listen on
        """
        self._host = host
        self._port = port

        config = uvicorn.Config(
            self.app,
            host=host,
            port=port,
            log_level="warning",
            access_log=False,
        )
        self._server = uvicorn.Server(config)
        self._serve_task = asyncio.create_task(self._server.serve(), name="web-server")

        logger.info("Web server started on http://%s:%d", host, port)

    async def stop(self) -> None:
        """Stop the web server."""
        if self._server is not None:
            self._server.should_exit = True
            self._server = None

        if self._serve_task is not None:
            try:
                await asyncio.wait_for(self._serve_task, timeout=5.0)
            except asyncio.TimeoutError:
                logger.warning("Web server did not stop in time")
            self._serve_task = None

        logger.info("Web server stopped")

    @property
    def port(self) -> int:
        """Get the server port."""
        return self._port

    @property
    def host(self) -> str:
        """Get the server host."""
        return self._host
