"""VLC media player."""

from routepause.player.backends.base import ScriptablePlayer
from routepause.player.controller import PlayState

# What osascript prints for an AppleScript ``missing value``
MISSING_VALUE = "missing value"


class VlcPlayer(ScriptablePlayer):
    """
    VLC exposes a ``playing`` boolean and a single ``play`` command that
    toggles between playing and paused.

    Both commands check ``playing`` inside the script before toggling, so a
    retried command can never flip the state back.

    ``playing`` is false both when paused and when stopped. A stopped VLC has
    no current item, so that is asked as well before reporting PAUSED.
    """

    backend = "vlc"
    identity = "org.videolan.vlc"
    name = "VLC"
    state_query = "playing"
    item_query = "name of current item"
    pause_command = "if playing then play"
    resume_command = "if not playing then play"

    def parse_state(self, raw: str) -> PlayState:
        value = raw.strip().lower()
        if value == "true":
            return PlayState.PLAYING
        if value == "false":
            return PlayState.PAUSED
        return PlayState.UNKNOWN

    async def _query_state(self) -> PlayState:
        state = await super()._query_state()
        if state is not PlayState.PAUSED:
            return state

        item = (await self.channel.tell(self.identity, self.item_query)).strip()
        if not item or item == MISSING_VALUE:
            return PlayState.STOPPED
        return PlayState.PAUSED
