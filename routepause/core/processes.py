"""
Short-lived subprocess helpers.

Both the AppleScript control channel and the polling route source run small
external commands. These helpers bound each run with a timeout and make sure
an overrunning process is torn down (SIGTERM, then SIGKILL) instead of being
left behind.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# How long to wait for a graceful subprocess termination before SIGKILL
TERMINATE_TIMEOUT_SECONDS = 1.0

# How long to wait for SIGKILL to take effect
KILL_TIMEOUT_SECONDS = 1.0


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a finished command."""

    returncode: int
    stdout: str
    stderr: str


async def terminate_subprocess_safely(
    process: asyncio.subprocess.Process,
    timeout: float = TERMINATE_TIMEOUT_SECONDS,
    kill_timeout: float = KILL_TIMEOUT_SECONDS,
) -> None:
    """
    Terminate a subprocess gracefully with escalation to SIGKILL.

    Args:
        process: The subprocess to terminate.
        timeout: Seconds to wait after SIGTERM before SIGKILL.
        kill_timeout: Seconds to wait after SIGKILL.
    """
    # Already dead - nothing to do
    if process.returncode is not None:
        return

    with contextlib.suppress(ProcessLookupError, OSError):
        process.terminate()

    try:
        await asyncio.wait_for(process.wait(), timeout=timeout)
        return
    except asyncio.TimeoutError:
        pass

    # Still alive - escalate to SIGKILL
    if process.returncode is None:
        with contextlib.suppress(ProcessLookupError, OSError):
            process.kill()

        try:
            await asyncio.wait_for(process.wait(), timeout=kill_timeout)
        except asyncio.TimeoutError:
            logger.warning("Subprocess PID %s did not die after SIGKILL", process.pid)


async def run_command(argv: list[str], timeout: float) -> CommandResult:
    """
    Run ``argv`` to completion and capture its output.

    Raises:
        OSError: If the command cannot be started.
        asyncio.TimeoutError: If it does not finish within ``timeout``. The
            process has been terminated by the time this propagates.
    """
    proc = await asyncio.create_subprocess_exec(
        *argv,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    finally:
        if proc.returncode is None:
            await terminate_subprocess_safely(proc)

    return CommandResult(
        returncode=proc.returncode if proc.returncode is not None else -1,
        stdout=stdout.decode(errors="ignore").strip() if stdout else "",
        stderr=stderr.decode(errors="ignore").strip() if stderr else "",
    )
