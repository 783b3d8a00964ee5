"""
AppleScript control channel.

Every backend talks to its application through ``osascript``. Each call
spawns one short-lived subprocess bounded by a timeout, so an unresponsive
player costs at most ``timeout`` seconds per call.

Note that ``tell application id "..."`` launches the application if it is
not running, so callers must check ``is running`` first.
"""

from __future__ import annotations

import asyncio
import logging

from routepause.core.processes import run_command
from routepause.errors import RoutePauseError

logger = logging.getLogger(__name__)

OSASCRIPT = "osascript"


class AppleScriptError(RoutePauseError):
    """An osascript invocation failed, timed out or could not be started."""


def running_script(bundle_id: str) -> str:
    """Script that answers "true"/"false" without launching the application."""
    return f'application id "{bundle_id}" is running'


def tell_script(bundle_id: str, body: str) -> str:
    """Wrap ``body`` in a one-line tell block for the application."""
    return f'tell application id "{bundle_id}" to {body}'


class AppleScriptChannel:
    """
    Runs AppleScript snippets through ``osascript``.

    One channel is shared by all backends. It keeps no state between calls.
    """

    def __init__(self, timeout: float = 3.0, executable: str = OSASCRIPT) -> None:
        """
        Initialize the channel.

        Args:
            timeout: Seconds a single script may run before it is killed.
            executable: osascript binary to invoke.
        """
        self.timeout = timeout
        self.executable = executable

    async def run(self, script: str) -> str:
        """
        Run a script and return its stripped stdout.

        Raises:
            AppleScriptError: If osascript is missing, exits non-zero or
                does not finish within the timeout.
        """
        try:
            result = await run_command([self.executable, "-e", script], timeout=self.timeout)
        except OSError as e:
            raise AppleScriptError(f"cannot start {self.executable}: {e}") from e
        except asyncio.TimeoutError:
            raise AppleScriptError(f"script timed out after {self.timeout:.1f}s") from None

        if result.returncode != 0:
            raise AppleScriptError(
                result.stderr or f"osascript exited with code {result.returncode}"
            )

        logger.debug("osascript %r -> %r", script, result.stdout)
        return result.stdout

    async def is_running(self, bundle_id: str) -> bool:
        """Check whether an application with ``bundle_id`` has a process."""
        return await self.run(running_script(bundle_id)) == "true"

    async def tell(self, bundle_id: str, body: str) -> str:
        """Send ``body`` to the application and return the result."""
        return await self.run(tell_script(bundle_id, body))
