"""
Output-route monitoring for routepause.

This package turns raw notifications about the active output device into
engage/disengage transitions for the coordinator.
"""

from routepause.device.monitor import DeviceChangeMonitor, DeviceTransition, RouteChange
from routepause.device.sources import PollingRouteSource, RouteSourceError

__all__ = [
    "DeviceChangeMonitor",
    "DeviceTransition",
    "PollingRouteSource",
    "RouteChange",
    "RouteSourceError",
]
