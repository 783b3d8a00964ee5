"""
ScriptablePlayer - base for players controlled through AppleScript.

A backend only declares its bundle identifier, the script fragments for the
state query and the two transport commands, and how to read the state
query's answer. Everything else (running checks, retries, error wrapping)
comes from PlayerControllerBase.
"""

from __future__ import annotations

import logging

from routepause.config import ControlSettings
from routepause.player.applescript import AppleScriptChannel
from routepause.player.controller import PlayerControllerBase, PlayState

logger = logging.getLogger(__name__)

# Values of the standard "player state" enumeration in scriptable players
PLAYER_STATE_NAMES: dict[str, PlayState] = {
    "playing": PlayState.PLAYING,
    "fast forwarding": PlayState.PLAYING,
    "rewinding": PlayState.PLAYING,
    "paused": PlayState.PAUSED,
    "stopped": PlayState.STOPPED,
}


class ScriptablePlayer(PlayerControllerBase):
    """
    PlayerControllerBase over an AppleScriptChannel.

    Subclasses set:
        backend       - short key used in configuration ("spotify")
        identity      - application bundle identifier
        name          - display name
        state_query   - script body answering the transport state
        pause_command / resume_command - script bodies
    and override parse_state() when the state query does not answer with
    the standard "player state" names.
    """

    backend: str = ""
    state_query: str = "player state"
    pause_command: str = "pause"
    resume_command: str = "play"

    def __init__(
        self,
        channel: AppleScriptChannel,
        control: ControlSettings | None = None,
    ) -> None:
        super().__init__(control)
        self.channel = channel

    def parse_state(self, raw: str) -> PlayState:
        """Map the state query's answer to a PlayState."""
        return PLAYER_STATE_NAMES.get(raw.strip().lower(), PlayState.UNKNOWN)

    async def _query_running(self) -> bool:
        return await self.channel.is_running(self.identity)

    async def _query_state(self) -> PlayState:
        raw = await self.channel.tell(self.identity, self.state_query)
        state = self.parse_state(raw)
        if state is PlayState.UNKNOWN:
            logger.debug("%s answered unexpected state %r", self.name, raw)
        return state

    async def _send_pause(self) -> None:
        await self.channel.tell(self.identity, self.pause_command)

    async def _send_resume(self) -> None:
        await self.channel.tell(self.identity, self.resume_command)
