"""
Tests for PlayerRegistry.
"""

import pytest

from routepause.errors import DuplicateIdentityError
from routepause.player.controller import PlayState
from routepause.player.registry import PlayerRegistry
from tests.conftest import FakePlayer


class TestRegistration:
    """Tests for register() and lookups."""

    def test_register_returns_handle(self) -> None:
        """Registering binds the identity to the controller."""
        registry = PlayerRegistry()
        player = FakePlayer("com.example.player")

        handle = registry.register("com.example.player", player)

        assert handle.identity == "com.example.player"
        assert handle.controller is player
        assert handle.name == "COM.EXAMPLE.PLAYER"
        assert registry.get("com.example.player") is handle

    def test_duplicate_identity_rejected(self) -> None:
        """A second registration under the same identity fails."""
        registry = PlayerRegistry()
        registry.register("x", FakePlayer("x"))

        with pytest.raises(DuplicateIdentityError) as exc_info:
            registry.register("x", FakePlayer("x"))

        assert exc_info.value.identity == "x"
        assert len(registry) == 1

    def test_unknown_lookup(self, registry: PlayerRegistry) -> None:
        """Unknown identities are not found."""
        assert registry.get("nope") is None
        assert not registry.is_known("nope")
        assert "nope" not in registry

    def test_registration_order(self, registry: PlayerRegistry) -> None:
        """all() and iteration follow registration order."""
        assert [h.identity for h in registry.all()] == ["a", "b", "c"]
        assert list(registry) == ["a", "b", "c"]

    def test_empty_registry_is_truthy(self) -> None:
        """An empty registry is still a registry."""
        registry = PlayerRegistry()
        assert len(registry) == 0
        assert registry

    def test_name_falls_back_to_identity(self) -> None:
        """A controller without a display name is shown by identity."""
        player = FakePlayer("x")
        player.name = ""
        handle = PlayerRegistry().register("x", player)
        assert handle.name == "x"


class TestQueries:
    """Tests for live state queries."""

    async def test_play_states(self, registry: PlayerRegistry) -> None:
        """Every player is queried; non-running players are UNKNOWN."""
        states = await registry.play_states()

        assert states == {
            "a": PlayState.PLAYING,
            "b": PlayState.PAUSED,
            "c": PlayState.UNKNOWN,
        }

    async def test_playing_now(self, registry: PlayerRegistry) -> None:
        """Only players currently playing are returned."""
        playing = await registry.playing_now()
        assert [h.identity for h in playing] == ["a"]

    async def test_playing_now_is_live(
        self, registry: PlayerRegistry, players: dict[str, FakePlayer]
    ) -> None:
        """Each call queries the players again."""
        players["b"].state = PlayState.PLAYING

        playing = await registry.playing_now()
        assert [h.identity for h in playing] == ["a", "b"]

    async def test_raising_controller_is_unknown(self) -> None:
        """A controller breaking its contract does not break the query."""

        class Rogue(FakePlayer):
            async def get_play_state(self) -> PlayState:
                raise RuntimeError("boom")

        registry = PlayerRegistry()
        registry.register("rogue", Rogue("rogue"))
        registry.register("ok", FakePlayer("ok", state=PlayState.PLAYING))

        states = await registry.play_states()
        assert states == {"rogue": PlayState.UNKNOWN, "ok": PlayState.PLAYING}

    async def test_transition_pass_covers_all_players(
        self, registry: PlayerRegistry, players: dict[str, FakePlayer]
    ) -> None:
        """One registry pass caches every controller's running check."""
        with registry.transition_pass():
            await registry.play_states()
            await registry.play_states()

        assert all(p.running_checks == 1 for p in players.values())
