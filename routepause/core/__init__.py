"""
Core of routepause.

This package contains the pause/resume coordinator, the event bus it
publishes on, and small subprocess helpers shared by the control channel and
the route source.
"""

from routepause.core.coordinator import CoordinatorState, PauseResumeCoordinator
from routepause.core.events import EventBus, event_bus

__all__ = [
    "CoordinatorState",
    "EventBus",
    "PauseResumeCoordinator",
    "event_bus",
]
