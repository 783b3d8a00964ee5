"""Apple Music and its predecessor iTunes."""

from routepause.player.backends.base import ScriptablePlayer


class MusicPlayer(ScriptablePlayer):
    """Music.app (macOS 10.15 and later)."""

    backend = "music"
    identity = "com.apple.Music"
    name = "Music"


class ITunesPlayer(ScriptablePlayer):
    """iTunes (macOS 10.14 and earlier). Same dictionary as Music."""

    backend = "itunes"
    identity = "com.apple.iTunes"
    name = "iTunes"
