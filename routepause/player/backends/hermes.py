"""Hermes (Pandora client)."""

from routepause.player.backends.base import ScriptablePlayer


class HermesPlayer(ScriptablePlayer):
    """Hermes names its state property "playback state" instead of "player state"."""

    backend = "hermes"
    identity = "com.alloysoftware.Hermes"
    name = "Hermes"
    state_query = "playback state"
