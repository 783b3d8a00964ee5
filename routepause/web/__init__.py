"""
routepause Web Layer.

This package provides the HTTP query surface a GUI shell uses to show which
players are known and which are currently paused by the system.
"""

from routepause.web.server import WebServer

__all__ = [
    "WebServer",
]
