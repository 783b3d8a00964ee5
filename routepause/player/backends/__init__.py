"""
Player backends.

Each backend controls one external player application. The factory
``build_controllers`` turns the configured backend keys into controller
instances sharing one AppleScript channel.

Supported backends:
  - ``music``    - Music.app
  - ``itunes``   - iTunes
  - ``spotify``  - Spotify
  - ``vlc``      - VLC (toggle-only play command)
  - ``vox``      - VOX (integer player state)
  - ``decibel``  - Decibel (boolean playing flag)
  - ``hermes``   - Hermes ("playback state")
  - ``swinsian`` - Swinsian
"""

from __future__ import annotations

import logging

from routepause.config import ControlSettings
from routepause.errors import ConfigError
from routepause.player.applescript import AppleScriptChannel
from routepause.player.backends.base import ScriptablePlayer
from routepause.player.backends.decibel import DecibelPlayer
from routepause.player.backends.hermes import HermesPlayer
from routepause.player.backends.music import ITunesPlayer, MusicPlayer
from routepause.player.backends.spotify import SpotifyPlayer
from routepause.player.backends.swinsian import SwinsianPlayer
from routepause.player.backends.vlc import VlcPlayer
from routepause.player.backends.vox import VoxPlayer

logger = logging.getLogger(__name__)

BACKENDS: dict[str, type[ScriptablePlayer]] = {
    cls.backend: cls
    for cls in (
        MusicPlayer,
        ITunesPlayer,
        SpotifyPlayer,
        VlcPlayer,
        VoxPlayer,
        DecibelPlayer,
        HermesPlayer,
        SwinsianPlayer,
    )
}

__all__ = [
    "BACKENDS",
    "DecibelPlayer",
    "HermesPlayer",
    "ITunesPlayer",
    "MusicPlayer",
    "ScriptablePlayer",
    "SpotifyPlayer",
    "SwinsianPlayer",
    "VlcPlayer",
    "VoxPlayer",
    "build_controllers",
]


def build_controllers(
    keys: list[str],
    channel: AppleScriptChannel,
    control: ControlSettings | None = None,
) -> list[ScriptablePlayer]:
    """
    Instantiate the backends named by ``keys``, in the given order.

    Raises:
        ConfigError: If a key does not name a known backend.
    """
    controllers: list[ScriptablePlayer] = []
    for key in keys:
        cls = BACKENDS.get(key.lower())
        if cls is None:
            known = ", ".join(sorted(BACKENDS))
            raise ConfigError(f"Unknown player backend {key!r} (known: {known})")
        controllers.append(cls(channel, control))

    logger.debug("Built %d player backends: %s", len(controllers), ", ".join(keys))
    return controllers
