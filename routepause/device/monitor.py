"""
Device Change Monitor for routepause.

Turns raw output-route notifications from the audio subsystem into the two
transitions the coordinator cares about:

- ENGAGED: the managed device became the active output
- DISENGAGED: it stopped being the active output

Audio hardware is noisy: one logical switch can produce several
notifications in a row. The monitor therefore keeps a single pending slot
with last-transition-wins semantics:

1. Each notification is normalized; changes that do not flip the managed
   device's status are dropped.
2. A normalized transition overwrites any transition that has not been
   delivered yet.
3. A worker delivers the pending transition after a short coalescing delay
   and waits for the handler to finish before taking the next one.

A transition that is already being handled is never cancelled.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class DeviceTransition(Enum):
    """Normalized route transition of the managed device."""

    ENGAGED = "engaged"
    DISENGAGED = "disengaged"


@dataclass(frozen=True)
class RouteChange:
    """One raw notification: the output device that is now active (None if none)."""

    device: str | None


TransitionHandler = Callable[[DeviceTransition], Coroutine[Any, Any, Any]]


class DeviceChangeMonitor:
    """
    Normalizes and coalesces route notifications for one managed device.

    Usage:
        monitor = DeviceChangeMonitor("Background Music", coordinator.handle)
        await monitor.start()
        monitor.notify(RouteChange("Background Music"))
    """

    def __init__(
        self,
        managed_device: str,
        handler: TransitionHandler,
        coalesce_delay: float = 0.05,
    ) -> None:
        """
        Initialize the monitor.

        Args:
            managed_device: Name or UID of the device to watch (case-insensitive).
            handler: Coroutine function receiving each delivered transition.
            coalesce_delay: Seconds to wait for further notifications before
                delivering the latest one.
        """
        self.managed_device = managed_device
        self.coalesce_delay = coalesce_delay
        self._handler = handler

        # Last observed status of the managed device (None until first notification)
        self._engaged: bool | None = None

        self._pending: DeviceTransition | None = None
        self._wakeup = asyncio.Event()
        self._idle = asyncio.Event()
        self._idle.set()

        self._worker: asyncio.Task[None] | None = None
        self._stopping = False
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def pending(self) -> DeviceTransition | None:
        """The transition waiting to be delivered, if any."""
        return self._pending

    @property
    def engaged(self) -> bool | None:
        """Whether the managed device was active at the last notification."""
        return self._engaged

    def is_managed(self, device: str | None) -> bool:
        """Check whether ``device`` is the managed device."""
        if device is None:
            return False
        return device.strip().casefold() == self.managed_device.strip().casefold()

    def normalize(self, change: RouteChange) -> DeviceTransition | None:
        """
        Map a raw notification to a transition, updating the observed status.

        The first notification only yields a transition if the managed device
        is already active; a disengaged start needs no action.
        """
        engaged = self.is_managed(change.device)
        previous = self._engaged
        self._engaged = engaged

        if previous == engaged:
            return None
        if previous is None and not engaged:
            return None
        return DeviceTransition.ENGAGED if engaged else DeviceTransition.DISENGAGED

    def notify(self, change: RouteChange) -> None:
        """Feed one raw notification. Must be called from the event loop thread."""
        transition = self.normalize(change)
        if transition is None:
            logger.debug("Route change to %r is not a transition", change.device)
            return

        if self._pending is not None:
            logger.debug(
                "Coalescing route transitions: %s replaces pending %s",
                transition.value,
                self._pending.value,
            )
        else:
            logger.info("Route transition: %s (device %r)", transition.value, change.device)

        self._pending = transition
        self._idle.clear()
        self._wakeup.set()

    def notify_threadsafe(self, change: RouteChange) -> None:
        """Feed a notification from a foreign thread (e.g. an OS callback)."""
        if self._loop is None:
            raise RuntimeError("DeviceChangeMonitor is not started")
        self._loop.call_soon_threadsafe(self.notify, change)

    async def start(self) -> None:
        """Start delivering transitions."""
        if self._worker is not None:
            return
        self._loop = asyncio.get_running_loop()
        self._worker = asyncio.create_task(self._run(), name="device-change-monitor")
        logger.info("Watching output route for %r", self.managed_device)

    async def stop(self) -> None:
        """
        Stop the worker.

        A transition being handled runs to completion; undelivered ones are
        dropped.
        """
        if self._worker is None:
            return
        worker = self._worker
        self._worker = None

        self._stopping = True
        self._wakeup.set()
        await worker

        self._pending = None
        self._stopping = False
        self._wakeup.clear()
        self._idle.set()

    async def wait_idle(self) -> None:
        """Wait until nothing is pending and no transition is being handled."""
        await self._idle.wait()

    async def _run(self) -> None:
        while not self._stopping:
            await self._wakeup.wait()
            if self.coalesce_delay > 0 and not self._stopping:
                await asyncio.sleep(self.coalesce_delay)
            self._wakeup.clear()
            if self._stopping:
                break

            transition = self._pending
            self._pending = None
            if transition is None:
                self._idle.set()
                continue

            try:
                await self._handler(transition)
            except Exception as e:
                logger.exception("Error handling %s transition: %s", transition.value, e)

            if self._pending is None:
                self._idle.set()
