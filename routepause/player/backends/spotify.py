"""Spotify desktop client."""

from routepause.player.backends.base import ScriptablePlayer


class SpotifyPlayer(ScriptablePlayer):
    backend = "spotify"
    identity = "com.spotify.client"
    name = "Spotify"
