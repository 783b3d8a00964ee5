"""
Player control for routepause.

This package holds the player control contract, the AppleScript control
channel, the per-application backends and the registry of known players.
"""

from routepause.player.controller import PlayerController, PlayerControllerBase, PlayState
from routepause.player.registry import PlayerHandle, PlayerRegistry

__all__ = [
    "PlayState",
    "PlayerController",
    "PlayerControllerBase",
    "PlayerHandle",
    "PlayerRegistry",
]
