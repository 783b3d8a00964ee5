"""
Player control contract for routepause.

This module defines the uniform control surface every player backend
satisfies (``PlayerController``) and the shared default behaviour backends
build on (``PlayerControllerBase``).

Contract summary:
- is_running() never raises; False if the application has no process.
- get_play_state() never raises; UNKNOWN if not running or unreachable.
- pause()/resume() are no-ops (returning False) when the player is not
  running or already in the requested state. When a command is needed they
  return True once it took effect, or raise ControlChannelError.

None of these calls mutate coordinator state. The only side effect is the
external player's transport state.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Coroutine, Iterator
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from routepause.config import ControlSettings
from routepause.errors import ControlChannelError

logger = logging.getLogger(__name__)


class PlayState(Enum):
    """Transport state of an external player."""

    PLAYING = "playing"
    PAUSED = "paused"
    STOPPED = "stopped"
    UNKNOWN = "unknown"


@runtime_checkable
class PlayerController(Protocol):
    """Capability set every player backend implements."""

    identity: str
    name: str

    async def is_running(self) -> bool: ...

    async def get_play_state(self) -> PlayState: ...

    async def pause(self) -> bool: ...

    async def resume(self) -> bool: ...


class PlayerControllerBase:
    """
    Default behaviour shared by all backends.

    Subclasses implement four primitives:

        async def _query_running(self) -> bool: ...
        async def _query_state(self) -> PlayState: ...
        async def _send_pause(self) -> None: ...
        async def _send_resume(self) -> None: ...

    The primitives may raise anything; this class turns query failures into
    False/UNKNOWN and command failures into ControlChannelError.

    Running checks can be cached for the duration of one coordinator pass:

        with controller.transition_pass():
            await controller.pause()  # one running check before the command

    Once a command has been sent the cache is bypassed: every settle poll and
    retry asks the application again, so a player that quit is left alone.
    """

    identity: str = ""
    name: str = ""

    def __init__(self, control: ControlSettings | None = None) -> None:
        self.control = control or ControlSettings()
        self._pass_depth = 0
        self._running_cache: bool | None = None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.identity}>"

    # -- Primitives (subclass must implement) --

    async def _query_running(self) -> bool:
        raise NotImplementedError

    async def _query_state(self) -> PlayState:
        raise NotImplementedError

    async def _send_pause(self) -> None:
        raise NotImplementedError

    async def _send_resume(self) -> None:
        raise NotImplementedError

    # -- Running-check cache --

    @contextlib.contextmanager
    def transition_pass(self) -> Iterator[None]:
        """Cache the running check until the outermost pass exits."""
        self._pass_depth += 1
        try:
            yield
        finally:
            self._pass_depth -= 1
            if self._pass_depth == 0:
                self._running_cache = None

    # -- Contract --

    async def is_running(self) -> bool:
        if self._pass_depth and self._running_cache is not None:
            return self._running_cache

        try:
            running = bool(await self._query_running())
        except Exception as e:
            logger.debug("Running check failed for %s: %s", self.identity, e)
            running = False

        if self._pass_depth:
            self._running_cache = running
        return running

    async def get_play_state(self) -> PlayState:
        if not await self.is_running():
            return PlayState.UNKNOWN

        try:
            return await self._query_state()
        except Exception as e:
            logger.debug("State query failed for %s: %s", self.identity, e)
            return PlayState.UNKNOWN

    async def pause(self) -> bool:
        if not await self.is_running():
            logger.debug("%s is not running, nothing to pause", self.name)
            return False

        state = await self.get_play_state()
        if state is not PlayState.PLAYING:
            logger.debug("%s is %s, nothing to pause", self.name, state.value)
            return False

        # A player that quit while pausing is no longer playing either.
        await self._command_with_retry(
            "pause",
            self._send_pause,
            lambda s: s is not PlayState.PLAYING,
        )
        logger.info("Paused %s", self.name)
        return True

    async def resume(self) -> bool:
        if not await self.is_running():
            logger.debug("%s is not running, nothing to resume", self.name)
            return False

        state = await self.get_play_state()
        if state is PlayState.PLAYING:
            logger.debug("%s is already playing", self.name)
            return False
        if state is PlayState.STOPPED:
            # Stopped means the user ended playback after we paused it.
            logger.debug("%s was stopped, not resuming", self.name)
            return False

        if not await self._command_with_retry(
            "resume",
            self._send_resume,
            lambda s: s is PlayState.PLAYING,
        ):
            logger.info("%s quit before it could be resumed", self.name)
            return False
        logger.info("Resumed %s", self.name)
        return True

    # -- Helpers --

    async def _running_now(self) -> bool:
        """Ask the application again, replacing any cached running check."""
        self._running_cache = None
        return await self.is_running()

    async def _wait_for_state(self, settled: Callable[[PlayState], bool]) -> bool | None:
        """
        Poll the play state until ``settled`` accepts it or the settle timeout passes.

        Every poll re-checks that the application still runs, so one that quit
        after the command is never sent a state query.

        Returns:
            True once settled, False on timeout, None if the application quit.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.control.settle_timeout

        while True:
            if not await self._running_now():
                return True if settled(PlayState.UNKNOWN) else None
            if settled(await self.get_play_state()):
                return True
            if loop.time() >= deadline:
                return False
            await asyncio.sleep(self.control.settle_poll_interval)

    async def _command_with_retry(
        self,
        action: str,
        send: Callable[[], Coroutine[Any, Any, None]],
        settled: Callable[[PlayState], bool],
    ) -> bool:
        """
        Send a control command with bounded retries.

        Each attempt sends the command and then waits for the player state to
        satisfy ``settled``. Between attempts we back off linearly and check
        the application still runs before sending again.

        Returns:
            True once the state settled, False if the application quit first.

        Raises:
            ControlChannelError: If every attempt failed.
        """
        attempts = self.control.retry_count + 1
        reason = "no attempt made"

        for attempt in range(1, attempts + 1):
            if attempt > 1 and not await self._running_now():
                logger.debug("%s quit, not retrying %s", self.name, action)
                return False

            try:
                await send()
            except ControlChannelError as e:
                reason = e.reason
            except Exception as e:
                reason = f"{type(e).__name__}: {e}"
            else:
                outcome = await self._wait_for_state(settled)
                if outcome is None:
                    logger.debug("%s quit during %s", self.name, action)
                    return False
                if outcome:
                    if attempt > 1:
                        logger.info(
                            "%s of %s succeeded on attempt %d", action, self.name, attempt
                        )
                    return True
                reason = f"state did not change within {self.control.settle_timeout:.1f}s"

            logger.debug(
                "%s of %s failed (attempt %d/%d): %s",
                action,
                self.name,
                attempt,
                attempts,
                reason,
            )
            if attempt < attempts:
                await asyncio.sleep(self.control.retry_backoff * attempt)

        raise ControlChannelError(self.identity, action, reason)
