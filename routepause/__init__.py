"""
routepause - pause media players while a managed output device is active.

When the managed (e.g. virtual loopback) output device becomes the active
audio route, routepause pauses every known player that is playing and
remembers which ones it paused. When the device stops being the active
route, it resumes exactly those players.
"""

__version__ = "0.1.0"
__license__ = "GPL-2.0"

from routepause.server import RoutePauseServer

__all__ = ["RoutePauseServer", "__version__"]
