"""
Error taxonomy for routepause.

- ControlChannelError: a control command could not be delivered to a player,
  or it did not take effect in time. Reported per player; a batch continues.
- DuplicateIdentityError: two backends claim the same player identity.
  Raised at registration time and treated as fatal on startup.
- ConfigError: the configuration file is invalid.
"""

from __future__ import annotations


class RoutePauseError(Exception):
    """Base class for all routepause errors."""


class ControlChannelError(RoutePauseError):
    """A pause/resume command failed for one player."""

    def __init__(self, identity: str, action: str, reason: str) -> None:
        self.identity = identity
        self.action = action
        self.reason = reason
        super().__init__(f"{action} failed for {identity}: {reason}")


class DuplicateIdentityError(RoutePauseError):
    """A player identity was registered twice."""

    def __init__(self, identity: str) -> None:
        self.identity = identity
        super().__init__(f"Player already registered: {identity}")


class ConfigError(RoutePauseError):
    """Invalid configuration."""
