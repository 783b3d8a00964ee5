"""
Route sources - where raw output-route notifications come from.

The audio subsystem itself lives outside routepause. ``PollingRouteSource``
is the portable adapter: it periodically runs a command that prints the
current default output device (``SwitchAudioSource -c -t output`` on macOS,
``pactl get-default-sink`` with PulseAudio/PipeWire) and feeds every change
to a DeviceChangeMonitor.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from routepause.core.processes import run_command
from routepause.device.monitor import DeviceChangeMonitor, RouteChange
from routepause.errors import RoutePauseError

logger = logging.getLogger(__name__)


class RouteSourceError(RoutePauseError):
    """The route command could not be run or failed."""


class PollingRouteSource:
    """Polls a shell command for the active output device."""

    def __init__(
        self,
        command: list[str],
        monitor: DeviceChangeMonitor,
        interval: float = 1.0,
        timeout: float = 3.0,
    ) -> None:
        """
        Initialize the source.

        Args:
            command: argv printing the active output device on stdout.
            monitor: Monitor receiving RouteChange notifications.
            interval: Seconds between polls.
            timeout: Seconds a single poll may take.
        """
        if not command:
            raise ValueError("PollingRouteSource needs a command")
        self.command = list(command)
        self.monitor = monitor
        self.interval = interval
        self.timeout = timeout

        self._last_device: str | None = None
        self._has_reading = False
        self._failing = False
        self._task: asyncio.Task[None] | None = None

    @property
    def last_device(self) -> str | None:
        """Device reported by the last successful poll."""
        return self._last_device

    async def read_device(self) -> str | None:
        """
        Run the command once and return the active device (None if empty).

        Raises:
            RouteSourceError: If the command cannot run, fails or times out.
        """
        try:
            result = await run_command(self.command, timeout=self.timeout)
        except OSError as e:
            raise RouteSourceError(f"cannot run {self.command[0]}: {e}") from e
        except asyncio.TimeoutError:
            raise RouteSourceError(f"{self.command[0]} timed out after {self.timeout:.1f}s") from None

        if result.returncode != 0:
            raise RouteSourceError(
                result.stderr or f"{self.command[0]} exited with code {result.returncode}"
            )

        # Some tools print several lines; the device is the first one.
        first_line = result.stdout.splitlines()[0].strip() if result.stdout else ""
        return first_line or None

    async def poll_once(self) -> None:
        """Poll once and notify the monitor if the active device changed."""
        try:
            device = await self.read_device()
        except RouteSourceError as e:
            # Log once per failure streak; a failed poll says nothing about the route.
            if not self._failing:
                logger.warning("Could not read the output route: %s", e)
                self._failing = True
            return

        if self._failing:
            logger.info("Output route readable again")
            self._failing = False

        if self._has_reading and device == self._last_device:
            return

        logger.info("Active output device: %r", device)
        self._last_device = device
        self._has_reading = True
        self.monitor.notify(RouteChange(device))

    async def start(self) -> None:
        """Start polling in the background."""
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._run(), name="route-poller")
        logger.info("Polling output route with: %s", " ".join(self.command))

    async def stop(self) -> None:
        """Stop polling."""
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def _run(self) -> None:
        while True:
            await self.poll_once()
            await asyncio.sleep(self.interval)
