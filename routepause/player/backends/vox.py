"""VOX."""

from routepause.player.backends.base import ScriptablePlayer
from routepause.player.controller import PlayState

# VOX answers "player state" with an integer
VOX_STATES: dict[str, PlayState] = {
    "1": PlayState.PLAYING,
    "0": PlayState.PAUSED,
    "-1": PlayState.STOPPED,
}


class VoxPlayer(ScriptablePlayer):
    backend = "vox"
    identity = "com.coppertino.Vox"
    name = "VOX"

    def parse_state(self, raw: str) -> PlayState:
        return VOX_STATES.get(raw.strip(), PlayState.UNKNOWN)
