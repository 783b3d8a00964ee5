"""Decibel."""

from routepause.player.backends.base import ScriptablePlayer
from routepause.player.controller import PlayState


class DecibelPlayer(ScriptablePlayer):
    """
    Decibel only exposes a ``playing`` boolean.

    It has no separate stopped state we can see, so "not playing" is read as
    paused.
    """

    backend = "decibel"
    identity = "org.sbooth.Decibel"
    name = "Decibel"
    state_query = "playing"

    def parse_state(self, raw: str) -> PlayState:
        value = raw.strip().lower()
        if value == "true":
            return PlayState.PLAYING
        if value == "false":
            return PlayState.PAUSED
        return PlayState.UNKNOWN
