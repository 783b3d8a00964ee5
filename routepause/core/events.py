"""
Event Bus for routepause.

This module provides a simple pub/sub event system for decoupled communication
between components. The coordinator publishes what it did so that the UI
layer (or anything else) can follow along without polling.

Event types:
- device.transition: The managed output device engaged or disengaged
- player.paused: The coordinator paused a player
- player.resumed: The coordinator resumed a player it had paused
- player.control_failed: A pause/resume command failed for one player

Usage:
    from routepause.core.events import event_bus

    async def on_paused(event: PlayerPausedEvent) -> None:
        print(f"Paused {event.player_id}")

    await event_bus.subscribe("player.paused", on_paused)
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Coroutine

logger = logging.getLogger(__name__)

# Type alias for event handlers
EventHandler = Callable[["Event"], Coroutine[Any, Any, None]]


@dataclass
class Event:
    """Base class for all events."""

    event_type: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert event to dictionary for JSON serialization."""
        return {"type": self.event_type}


@dataclass
class DeviceTransitionEvent(Event):
    """Fired when the coordinator starts processing a device transition."""

    event_type: str = field(default="device.transition", init=False)
    transition: str = ""  # engaged, disengaged

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.event_type,
            "transition": self.transition,
        }


@dataclass
class PlayerPausedEvent(Event):
    """Fired when the coordinator paused a playing player."""

    event_type: str = field(default="player.paused", init=False)
    player_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.event_type,
            "player_id": self.player_id,
        }


@dataclass
class PlayerResumedEvent(Event):
    """Fired when the coordinator resumed a player it had paused.

    ``changed`` is False when the player was already playing again (the user
    resumed it by hand) and the resume was a no-op.
    """

    event_type: str = field(default="player.resumed", init=False)
    player_id: str = ""
    changed: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.event_type,
            "player_id": self.player_id,
            "changed": self.changed,
        }


@dataclass
class PlayerControlFailedEvent(Event):
    """Fired when a pause or resume failed for one player."""

    event_type: str = field(default="player.control_failed", init=False)
    player_id: str = ""
    action: str = ""  # pause, resume
    error: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.event_type,
            "player_id": self.player_id,
            "action": self.action,
            "error": self.error,
        }


class EventBus:
    """
    Simple async pub/sub event bus.

    Supports:
    - Multiple handlers per event type
    - Wildcard subscriptions (e.g., "player.*")
    - Async handlers
    - Error isolation (one handler failing doesn't affect others)
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = {}
        self._lock = asyncio.Lock()

    async def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """
        Subscribe to events of a specific type.

        Args:
            event_type: Event type to subscribe to. Use "*" suffix for wildcards.
            handler: Async function to call when event is published.
        """
        async with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)
            logger.debug("Subscribed to %s: %s", event_type, handler)

    async def unsubscribe(self, event_type: str, handler: EventHandler) -> bool:
        """
        Unsubscribe a handler from an event type.

        Returns True if handler was found and removed.
        """
        async with self._lock:
            if event_type in self._handlers:
                try:
                    self._handlers[event_type].remove(handler)
                    logger.debug("Unsubscribed from %s: %s", event_type, handler)
                    return True
                except ValueError:
                    pass
            return False

    async def publish(self, event: Event) -> int:
        """
        Publish an event to all subscribed handlers.

        Args:
            event: The event to publish.

        Returns:
            Number of handlers that received the event.
        """
        event_type = event.event_type
        handlers_called = 0

        async with self._lock:
            matching_handlers: list[EventHandler] = []

            if event_type in self._handlers:
                matching_handlers.extend(self._handlers[event_type])

            # Wildcard matches (e.g., "player.*" matches "player.paused")
            for pattern, handlers in self._handlers.items():
                if pattern.endswith(".*"):
                    prefix = pattern[:-2]
                    if event_type.startswith(prefix + "."):
                        matching_handlers.extend(handlers)
                elif pattern == "*":
                    matching_handlers.extend(handlers)

        # Call handlers outside of lock
        for handler in matching_handlers:
            try:
                await handler(event)
                handlers_called += 1
            except Exception as e:
                logger.exception("Error in event handler for %s: %s", event_type, e)

        if handlers_called > 0:
            logger.debug("Published %s to %d handlers", event_type, handlers_called)

        return handlers_called

    async def clear(self) -> None:
        """Remove all subscriptions."""
        async with self._lock:
            self._handlers.clear()
            logger.debug("Cleared all event subscriptions")


class EventLog:
    """
    Keeps the most recent events published on a bus.

    The web API serves these so a UI shell can show what the coordinator did
    without holding a subscription of its own.
    """

    def __init__(self, maxlen: int = 100) -> None:
        self._entries: deque[dict[str, Any]] = deque(maxlen=maxlen)

    def __len__(self) -> int:
        return len(self._entries)

    async def attach(self, bus: EventBus) -> None:
        """Start recording every event published on ``bus``."""
        await bus.subscribe("*", self.record)

    async def detach(self, bus: EventBus) -> None:
        await bus.unsubscribe("*", self.record)

    async def record(self, event: Event) -> None:
        entry = event.to_dict()
        entry["time"] = time.time()
        self._entries.append(entry)

    def recent(self, limit: int | None = None) -> list[dict[str, Any]]:
        """Recorded events, oldest first, optionally only the last ``limit``."""
        entries = list(self._entries)
        if limit is not None:
            entries = entries[-limit:] if limit > 0 else []
        return entries


# Global event bus instance
event_bus = EventBus()
