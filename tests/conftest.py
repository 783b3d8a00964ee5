"""
Shared fixtures for routepause tests.

FakePlayer simulates an external player application in memory. It goes
through PlayerControllerBase, so no-op rules, retries and running-check
caching behave exactly as they do for real backends.
"""

from __future__ import annotations

import pytest

from routepause.config import ControlSettings
from routepause.core.events import EventBus
from routepause.player.controller import PlayerControllerBase, PlayState
from routepause.player.registry import PlayerRegistry

# Short timings so retry/settle paths finish quickly
FAST_CONTROL = ControlSettings(
    retry_count=2,
    retry_backoff=0.0,
    settle_timeout=0.05,
    settle_poll_interval=0.01,
    call_timeout=1.0,
    script_timeout=1.0,
)


class FakePlayer(PlayerControllerBase):
    """In-memory player application."""

    def __init__(
        self,
        identity: str,
        *,
        running: bool = True,
        state: PlayState = PlayState.PAUSED,
        control: ControlSettings = FAST_CONTROL,
    ) -> None:
        super().__init__(control)
        self.identity = identity
        self.name = identity.upper()
        self.running = running
        self.state = state

        # Commands raise while this is > 0, decremented per attempt
        self.failing_commands = 0
        # Commands are accepted but have no effect
        self.ignore_commands = False

        self.running_checks = 0
        self.pause_calls = 0
        self.resume_calls = 0

    async def _query_running(self) -> bool:
        self.running_checks += 1
        return self.running

    async def _query_state(self) -> PlayState:
        return self.state

    async def _send_pause(self) -> None:
        self.pause_calls += 1
        self._maybe_fail()
        if not self.ignore_commands:
            self.state = PlayState.PAUSED

    async def _send_resume(self) -> None:
        self.resume_calls += 1
        self._maybe_fail()
        if not self.ignore_commands:
            self.state = PlayState.PLAYING

    def _maybe_fail(self) -> None:
        if self.failing_commands > 0:
            self.failing_commands -= 1
            raise RuntimeError("control channel busy")


class QuittingPlayer(FakePlayer):
    """A player application that quits as soon as it receives a command."""

    def __init__(self, identity: str, **kwargs) -> None:
        super().__init__(identity, **kwargs)
        # Whatever reached the application after it quit
        self.calls_after_quit: list[str] = []

    async def _query_state(self) -> PlayState:
        if not self.running:
            self.calls_after_quit.append("state")
        return await super()._query_state()

    async def _send_pause(self) -> None:
        if not self.running:
            self.calls_after_quit.append("pause")
        self.pause_calls += 1
        self.running = False

    async def _send_resume(self) -> None:
        if not self.running:
            self.calls_after_quit.append("resume")
        self.resume_calls += 1
        self.running = False


@pytest.fixture
def bus() -> EventBus:
    """A private event bus per test."""
    return EventBus()


@pytest.fixture
def players() -> dict[str, FakePlayer]:
    """Three players: A playing, B paused, C not running."""
    return {
        "a": FakePlayer("a", state=PlayState.PLAYING),
        "b": FakePlayer("b", state=PlayState.PAUSED),
        "c": FakePlayer("c", running=False, state=PlayState.STOPPED),
    }


@pytest.fixture
def registry(players: dict[str, FakePlayer]) -> PlayerRegistry:
    """Registry holding the three fake players in order a, b, c."""
    registry = PlayerRegistry()
    for identity, player in players.items():
        registry.register(identity, player)
    return registry
