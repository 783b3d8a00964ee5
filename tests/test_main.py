"""
Tests for the command line entry point.
"""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from routepause.__main__ import apply_overrides, main, parse_args
from routepause.config import Settings, get_settings


class TestParseArgs:
    """Tests for argument parsing."""

    def test_defaults(self) -> None:
        """No arguments leaves everything to the config file."""
        args = parse_args([])

        assert args.verbose is False
        assert args.config is None
        assert args.device is None
        assert args.port is None
        assert args.no_web is False

    def test_all_options(self) -> None:
        """Every option is parsed."""
        args = parse_args(
            ["-v", "-c", "my.toml", "-d", "Loopback", "--host", "0.0.0.0", "-p", "8000", "--no-web"]
        )

        assert args.verbose is True
        assert args.config == Path("my.toml")
        assert args.device == "Loopback"
        assert args.host == "0.0.0.0"
        assert args.port == 8000
        assert args.no_web is True

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        """--version prints the version and exits."""
        with pytest.raises(SystemExit):
            parse_args(["--version"])
        assert "routepause" in capsys.readouterr().out


class TestOverrides:
    """Tests for applying command line overrides."""

    def test_overrides_applied(self) -> None:
        """Given options replace config values."""
        settings = apply_overrides(
            Settings(), parse_args(["-d", "Loopback", "-p", "8000", "--no-web"])
        )

        assert settings.device.managed == "Loopback"
        assert settings.web.port == 8000
        assert settings.web.enabled is False

    def test_no_overrides(self) -> None:
        """Without options the settings are unchanged."""
        settings = apply_overrides(Settings(), parse_args([]))
        assert settings == Settings()


class TestMain:
    """Tests for main()."""

    def test_config_error_exits_nonzero(self, tmp_path: Path) -> None:
        """A broken config file stops startup with exit code 1."""
        assert main(["-c", str(tmp_path / "missing.toml")]) == 1

    def test_runs_server(self) -> None:
        """main() runs the server with the loaded settings."""
        with patch("routepause.__main__.run_server", new=MagicMock()) as run_server:
            with patch("routepause.__main__.asyncio.run") as run:
                assert main(["--no-web"]) == 0

        run.assert_called_once()
        settings = run_server.call_args.args[0]
        assert settings.web.enabled is False
        assert get_settings() is settings
