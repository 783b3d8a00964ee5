"""
Pause/Resume Coordinator for routepause.

Pauses playing players when the managed output device engages and resumes
exactly those players when it disengages.

The coordinator exclusively owns the paused set: the identities of players
it paused and has not resumed yet. Rules:

1. Engage: query which players are playing right now, pause the ones not
   already in the paused set, and add every player whose pause() actually
   changed its state. A player the user had already paused is never
   recorded, so it is never resumed behind their back.
2. Disengage: resume every identity in the paused set as it was when the
   disengage started. Successes (including no-ops, e.g. the user already
   resumed by hand) leave the set; failures stay for a later retry.
3. Per-player failures are logged and published but never abort a batch.
4. Transitions run one at a time under a single lock. Calls to different
   players inside one batch run concurrently, each capped by call_timeout.

Nothing is retried automatically; ``retry_pending()`` is the manual path.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum

from routepause.core.events import (
    DeviceTransitionEvent,
    Event,
    EventBus,
    PlayerControlFailedEvent,
    PlayerPausedEvent,
    PlayerResumedEvent,
    event_bus,
)
from routepause.device.monitor import DeviceTransition
from routepause.errors import ControlChannelError
from routepause.player.registry import PlayerHandle, PlayerRegistry

logger = logging.getLogger(__name__)


class CoordinatorState(Enum):
    """What the coordinator is doing right now."""

    IDLE = "idle"
    ENGAGE_IN_PROGRESS = "engage_in_progress"
    DISENGAGE_IN_PROGRESS = "disengage_in_progress"


class PauseResumeCoordinator:
    """
    State machine pausing and resuming players around route transitions.

    Usage:
        coordinator = PauseResumeCoordinator(registry)
        await coordinator.handle(DeviceTransition.ENGAGED)
        ...
        await coordinator.handle(DeviceTransition.DISENGAGED)

    Event handlers subscribed to the bus run while the coordinator holds its
    lock and must not call back into the coordinator.
    """

    def __init__(
        self,
        registry: PlayerRegistry,
        *,
        call_timeout: float = 10.0,
        enabled: bool = True,
        bus: EventBus | None = None,
    ) -> None:
        """
        Initialize the coordinator.

        Args:
            registry: Known players (not owned).
            call_timeout: Upper bound for one pause()/resume() call.
            enabled: Whether engage transitions pause anything.
            bus: Event bus to publish on. Defaults to the global bus.
        """
        self._registry = registry
        self.call_timeout = call_timeout
        self._enabled = enabled
        self._bus = bus if bus is not None else event_bus

        self._paused: set[str] = set()
        self._lock = asyncio.Lock()
        self._state = CoordinatorState.IDLE

    # -- Queries --

    @property
    def state(self) -> CoordinatorState:
        return self._state

    @property
    def enabled(self) -> bool:
        """Whether engage transitions pause players (the auto-pause switch)."""
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        if value != self._enabled:
            logger.info("Auto-pause %s", "enabled" if value else "disabled")
        self._enabled = value

    def currently_managed_pauses(self) -> frozenset[str]:
        """Identities of players paused by us and not resumed yet."""
        return frozenset(self._paused)

    def is_player_known(self, identity: str) -> bool:
        return self._registry.is_known(identity)

    # -- Transitions --

    async def handle(self, transition: DeviceTransition) -> set[str]:
        """Process one transition to completion."""
        if transition is DeviceTransition.ENGAGED:
            return await self.engage()
        return await self.disengage()

    async def engage(self) -> set[str]:
        """
        Pause every player that is playing and not already paused by us.

        Returns:
            Identities newly added to the paused set.
        """
        async with self._lock:
            await self._publish(DeviceTransitionEvent(transition=DeviceTransition.ENGAGED.value))

            if not self._enabled:
                logger.info("Auto-pause is disabled, not pausing anything")
                return set()

            self._state = CoordinatorState.ENGAGE_IN_PROGRESS
            try:
                with self._registry.transition_pass():
                    playing = await self._registry.playing_now()
                    candidates = [h for h in playing if h.identity not in self._paused]
                    results = await asyncio.gather(
                        *(self._control(handle, "pause") for handle in candidates)
                    )

                paused = [h.identity for h, changed in zip(candidates, results) if changed]
                self._paused.update(paused)

                for identity in paused:
                    await self._publish(PlayerPausedEvent(player_id=identity))

                logger.info(
                    "Engaged: %d playing, %d paused now, %d paused by us in total",
                    len(playing),
                    len(paused),
                    len(self._paused),
                )
                return set(paused)
            finally:
                self._state = CoordinatorState.IDLE

    async def disengage(self) -> set[str]:
        """
        Resume the players we paused.

        Returns:
            Identities removed from the paused set.
        """
        async with self._lock:
            await self._publish(
                DeviceTransitionEvent(transition=DeviceTransition.DISENGAGED.value)
            )

            if not self._paused:
                logger.debug("Disengaged with nothing to resume")
                return set()

            return await self._resume_paused()

    async def retry_pending(self) -> set[str]:
        """
        Try again to resume players whose resume failed earlier.

        Returns:
            Identities removed from the paused set.
        """
        async with self._lock:
            if not self._paused:
                return set()

            logger.info("Retrying resume for %d players", len(self._paused))
            return await self._resume_paused()

    # -- Internals --

    async def _resume_paused(self) -> set[str]:
        """Resume a snapshot of the paused set. Caller holds the lock."""
        self._state = CoordinatorState.DISENGAGE_IN_PROGRESS
        try:
            stale = {identity for identity in self._paused if not self._registry.is_known(identity)}
            if stale:
                logger.warning("Dropping unknown players from paused set: %s", ", ".join(sorted(stale)))
                self._paused -= stale

            handles: list[PlayerHandle] = [
                handle for handle in self._registry.all() if handle.identity in self._paused
            ]

            with self._registry.transition_pass():
                results = await asyncio.gather(
                    *(self._control(handle, "resume") for handle in handles)
                )

            resumed: set[str] = set()
            for handle, result in zip(handles, results):
                if result is None:
                    continue
                self._paused.discard(handle.identity)
                resumed.add(handle.identity)
                await self._publish(PlayerResumedEvent(player_id=handle.identity, changed=result))

            if self._paused:
                logger.warning(
                    "Could not resume %d players, keeping them pending: %s",
                    len(self._paused),
                    ", ".join(sorted(self._paused)),
                )
            else:
                logger.info("Disengaged: resumed %d players", len(resumed))
            return resumed
        finally:
            self._state = CoordinatorState.IDLE

    async def _control(self, handle: PlayerHandle, action: str) -> bool | None:
        """
        Pause or resume one player, isolating its failures.

        Returns:
            The controller's answer (True if the state changed, False for a
            no-op), or None if the call failed.
        """
        controller = handle.controller
        call = controller.pause if action == "pause" else controller.resume

        try:
            try:
                return await asyncio.wait_for(call(), timeout=self.call_timeout)
            except asyncio.TimeoutError:
                raise ControlChannelError(
                    handle.identity, action, f"no answer within {self.call_timeout:.1f}s"
                ) from None
        except ControlChannelError as e:
            logger.error("Could not %s %s: %s", action, handle.name, e.reason)
            error = e.reason
        except Exception as e:
            logger.exception("Unexpected error trying to %s %s", action, handle.name)
            error = f"{type(e).__name__}: {e}"

        await self._publish(
            PlayerControlFailedEvent(player_id=handle.identity, action=action, error=error)
        )
        return None

    async def _publish(self, event: Event) -> None:
        await self._bus.publish(event)
