"""Swinsian."""

from routepause.player.backends.base import ScriptablePlayer


class SwinsianPlayer(ScriptablePlayer):
    backend = "swinsian"
    identity = "com.swinsian.Swinsian"
    name = "Swinsian"
