"""
routepause - Main Server Module

This module contains the RoutePauseServer class that wires all components
together and manages the application lifecycle.
"""

from __future__ import annotations

import asyncio
import logging
import signal

from routepause.config import Settings, get_settings
from routepause.core.coordinator import PauseResumeCoordinator
from routepause.core.events import Event, EventBus, EventLog, event_bus
from routepause.device.monitor import DeviceChangeMonitor
from routepause.device.sources import PollingRouteSource
from routepause.player.applescript import AppleScriptChannel
from routepause.player.backends import build_controllers
from routepause.player.controller import PlayerController
from routepause.player.registry import PlayerRegistry
from routepause.web.server import WebServer

logger = logging.getLogger(__name__)


class RoutePauseServer:
    """
    Main routepause service that coordinates all components.

    The server manages:
    - Player registry built from the configured backends
    - Pause/resume coordinator
    - Device change monitor fed by a polling route source
    - Web server for the GUI shell's queries (optional)

    Startup fails fast on configuration errors (unknown backend, duplicate
    player identity). Once running, no player failure stops the service.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        controllers: list[PlayerController] | None = None,
        bus: EventBus | None = None,
    ) -> None:
        """
        Initialize the server.

        Args:
            settings: Loaded configuration. Defaults to the global settings.
            controllers: Player backends to register instead of the
                configured ones.
            bus: Event bus for coordinator events. Defaults to the global bus.

        Raises:
            ConfigError: If a configured backend is unknown.
            DuplicateIdentityError: If two backends share an identity.
        """
        if settings is None:
            settings = get_settings()
        self.settings = settings
        self.bus = bus if bus is not None else event_bus

        if controllers is None:
            channel = AppleScriptChannel(timeout=settings.control.script_timeout)
            controllers = list(
                build_controllers(settings.players.enabled, channel, settings.control)
            )

        # Core components
        self.player_registry = PlayerRegistry()
        for controller in controllers:
            self.player_registry.register(controller.identity, controller)

        self.coordinator = PauseResumeCoordinator(
            self.player_registry,
            call_timeout=settings.control.call_timeout,
            enabled=settings.players.autopause,
            bus=self.bus,
        )

        self.monitor = DeviceChangeMonitor(
            settings.device.managed,
            self.coordinator.handle,
            coalesce_delay=settings.device.coalesce_delay,
        )

        self.route_source: PollingRouteSource | None = None
        if settings.device.poll_command:
            self.route_source = PollingRouteSource(
                settings.device.poll_command,
                self.monitor,
                interval=settings.device.poll_interval,
                timeout=settings.control.script_timeout,
            )
        else:
            logger.warning("No device.poll_command configured; route changes must be fed in")

        self.event_log = EventLog()
        self.web_server: WebServer | None = None

        # Server state
        self._running = False
        self._shutdown_event: asyncio.Event | None = None

    async def start(self) -> None:
        """Start all components."""
        logger.info(
            "Starting routepause for device %r with %d players",
            self.settings.device.managed,
            len(self.player_registry),
        )

        self._running = True
        self._shutdown_event = asyncio.Event()

        await self.bus.subscribe("player.*", self._log_player_event)
        await self.event_log.attach(self.bus)

        await self.monitor.start()

        if self.route_source is not None:
            await self.route_source.start()

        if self.settings.web.enabled:
            self.web_server = WebServer(
                coordinator=self.coordinator,
                player_registry=self.player_registry,
                managed_device=self.settings.device.managed,
                event_log=self.event_log,
            )
            await self.web_server.start(host=self.settings.web.host, port=self.settings.web.port)

        logger.info("routepause started")

    async def stop(self) -> None:
        """Stop all components gracefully."""
        if not self._running:
            return

        logger.info("Stopping routepause...")
        self._running = False

        if self.web_server:
            await self.web_server.stop()
            self.web_server = None

        # Stop feeding notifications before stopping the monitor
        if self.route_source is not None:
            await self.route_source.stop()

        await self.monitor.stop()

        await self.bus.unsubscribe("player.*", self._log_player_event)
        await self.event_log.detach(self.bus)

        pending = self.coordinator.currently_managed_pauses()
        if pending:
            # Not persisted: after a restart these players stay paused.
            logger.warning(
                "Stopping with %d players still paused by us: %s",
                len(pending),
                ", ".join(sorted(pending)),
            )

        if self._shutdown_event:
            self._shutdown_event.set()

        logger.info("routepause stopped")

    async def run(self) -> None:
        """
        Run until shutdown is requested.

        This method starts all components and waits for SIGINT or SIGTERM.
        """
        await self.start()

        loop = asyncio.get_running_loop()

        def handle_signal() -> None:
            logger.info("Received shutdown signal")
            if self._shutdown_event:
                self._shutdown_event.set()

        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, handle_signal)
            except NotImplementedError:
                # Signal handlers not supported on Windows
                pass

        if self._shutdown_event:
            await self._shutdown_event.wait()

        await self.stop()

    @property
    def is_running(self) -> bool:
        """Check if the server is currently running."""
        return self._running

    async def _log_player_event(self, event: Event) -> None:
        logger.debug("Event: %s", event.to_dict())
