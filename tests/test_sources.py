"""
Tests for PollingRouteSource.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from routepause.core.processes import CommandResult
from routepause.device.monitor import RouteChange
from routepause.device.sources import PollingRouteSource, RouteSourceError


def ok(stdout: str) -> CommandResult:
    return CommandResult(returncode=0, stdout=stdout, stderr="")


@pytest.fixture
def monitor() -> MagicMock:
    return MagicMock()


@pytest.fixture
def source(monitor: MagicMock) -> PollingRouteSource:
    return PollingRouteSource(["SwitchAudioSource", "-c"], monitor, interval=0.01, timeout=1.0)


class TestReadDevice:
    """Tests for a single read."""

    def test_empty_command_rejected(self, monitor: MagicMock) -> None:
        """A source needs something to run."""
        with pytest.raises(ValueError):
            PollingRouteSource([], monitor)

    async def test_first_line(self, source: PollingRouteSource) -> None:
        """The device is the first line of output."""
        with patch(
            "routepause.device.sources.run_command",
            AsyncMock(return_value=ok("Background Music\nextra")),
        ) as run:
            assert await source.read_device() == "Background Music"

        run.assert_awaited_once_with(["SwitchAudioSource", "-c"], timeout=1.0)

    async def test_empty_output(self, source: PollingRouteSource) -> None:
        """No output means no active device."""
        with patch("routepause.device.sources.run_command", AsyncMock(return_value=ok(""))):
            assert await source.read_device() is None

    async def test_non_zero_exit(self, source: PollingRouteSource) -> None:
        """A failing command raises RouteSourceError with its stderr."""
        result = CommandResult(returncode=1, stdout="", stderr="no such device")
        with patch("routepause.device.sources.run_command", AsyncMock(return_value=result)):
            with pytest.raises(RouteSourceError, match="no such device"):
                await source.read_device()

    async def test_missing_binary(self, source: PollingRouteSource) -> None:
        """A command that cannot start raises RouteSourceError."""
        with patch(
            "routepause.device.sources.run_command",
            AsyncMock(side_effect=FileNotFoundError("SwitchAudioSource")),
        ):
            with pytest.raises(RouteSourceError, match="cannot run"):
                await source.read_device()

    async def test_timeout(self, source: PollingRouteSource) -> None:
        """A hanging command raises RouteSourceError."""
        with patch(
            "routepause.device.sources.run_command",
            AsyncMock(side_effect=asyncio.TimeoutError),
        ):
            with pytest.raises(RouteSourceError, match="timed out"):
                await source.read_device()


class TestPolling:
    """Tests for change detection."""

    async def test_notifies_on_change_only(
        self, source: PollingRouteSource, monitor: MagicMock
    ) -> None:
        """The monitor hears about the first reading and every change."""
        readings = AsyncMock(side_effect=[ok("Speakers"), ok("Speakers"), ok("Background Music")])
        with patch("routepause.device.sources.run_command", readings):
            for _ in range(3):
                await source.poll_once()

        assert [c.args[0] for c in monitor.notify.call_args_list] == [
            RouteChange("Speakers"),
            RouteChange("Background Music"),
        ]
        assert source.last_device == "Background Music"

    async def test_failed_poll_does_not_notify(
        self, source: PollingRouteSource, monitor: MagicMock
    ) -> None:
        """A failed read says nothing about the route."""
        failing = AsyncMock(side_effect=OSError("gone"))
        with patch("routepause.device.sources.run_command", failing):
            await source.poll_once()
            await source.poll_once()

        monitor.notify.assert_not_called()
        assert source.last_device is None

    async def test_recovers_after_failure(
        self, source: PollingRouteSource, monitor: MagicMock
    ) -> None:
        """Reading again after failures keeps the last known device."""
        readings = AsyncMock(side_effect=[ok("Speakers"), OSError("gone"), ok("Speakers")])
        with patch("routepause.device.sources.run_command", readings):
            for _ in range(3):
                await source.poll_once()

        assert monitor.notify.call_count == 1

    async def test_start_stop(self, source: PollingRouteSource, monitor: MagicMock) -> None:
        """The background task polls until stopped."""
        with patch(
            "routepause.device.sources.run_command", AsyncMock(return_value=ok("Speakers"))
        ) as run:
            await source.start()
            await asyncio.sleep(0.05)
            await source.stop()

        assert run.await_count >= 1
        monitor.notify.assert_called_once_with(RouteChange("Speakers"))
