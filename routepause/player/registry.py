"""
Player Registry - the set of known player backends.

The registry is built once at startup and is read-mostly afterwards, so it
takes no lock. Iteration follows registration order everywhere.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Iterator
from dataclasses import dataclass

from routepause.errors import DuplicateIdentityError
from routepause.player.controller import PlayerController, PlayState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlayerHandle:
    """Binding of a player identity to its live backend."""

    identity: str
    controller: PlayerController

    @property
    def name(self) -> str:
        return getattr(self.controller, "name", "") or self.identity


class PlayerRegistry:
    """
    Central registry for all known player backends.

    Players are indexed by their identity (the application bundle id).
    Play-state queries always go to the players; nothing is cached here.
    """

    def __init__(self) -> None:
        """Initialize an empty player registry."""
        self._handles: dict[str, PlayerHandle] = {}

    def register(self, identity: str, controller: PlayerController) -> PlayerHandle:
        """
        Register a backend under ``identity``.

        Raises:
            DuplicateIdentityError: If the identity is already registered.
        """
        if identity in self._handles:
            raise DuplicateIdentityError(identity)

        handle = PlayerHandle(identity=identity, controller=controller)
        self._handles[identity] = handle
        logger.info("Player registered: %s (%s)", identity, handle.name)
        return handle

    def get(self, identity: str) -> PlayerHandle | None:
        """Look up a handle by identity."""
        return self._handles.get(identity)

    def is_known(self, identity: str) -> bool:
        """Check whether ``identity`` is registered."""
        return identity in self._handles

    def all(self) -> list[PlayerHandle]:
        """
        Get all handles in registration order.

        Returns:
            A list of handles (copy, safe to iterate).
        """
        return list(self._handles.values())

    async def play_states(self) -> dict[str, PlayState]:
        """Query every player's state concurrently, keyed by identity."""
        handles = self.all()
        results = await asyncio.gather(
            *(handle.controller.get_play_state() for handle in handles),
            return_exceptions=True,
        )

        states: dict[str, PlayState] = {}
        for handle, result in zip(handles, results):
            if isinstance(result, BaseException):
                # Backends should never raise here; treat it as unknown.
                logger.warning("State query for %s raised: %s", handle.identity, result)
                states[handle.identity] = PlayState.UNKNOWN
            else:
                states[handle.identity] = result
        return states

    async def playing_now(self) -> list[PlayerHandle]:
        """
        Get the players that are playing right now.

        This is a live query of every player on each call.

        Returns:
            Handles whose state is PLAYING, in registration order.
        """
        states = await self.play_states()
        return [handle for handle in self.all() if states[handle.identity] is PlayState.PLAYING]

    @contextlib.contextmanager
    def transition_pass(self) -> Iterator[None]:
        """Enter every controller's running-check cache for one coordinator pass."""
        with contextlib.ExitStack() as stack:
            for handle in self._handles.values():
                enter = getattr(handle.controller, "transition_pass", None)
                if enter is not None:
                    stack.enter_context(enter())
            yield

    def __len__(self) -> int:
        """Return the number of registered players."""
        return len(self._handles)

    def __contains__(self, identity: object) -> bool:
        """Check if a player with the given identity is registered."""
        return identity in self._handles

    def __iter__(self) -> Iterator[str]:
        """Iterate over registered identities."""
        return iter(self._handles)

    def __bool__(self) -> bool:
        """A registry instance is always truthy, even when empty."""
        return True
