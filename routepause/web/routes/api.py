"""
REST API Routes for routepause.

Read-mostly endpoints for a GUI shell:
- /api/status: Coordinator state and configuration summary
- /api/players: Known players with live play state
- /api/pauses: Players currently paused by the system
- /api/pauses/retry: Retry resuming players whose resume failed
- /api/autopause: Enable/disable pausing on engage
- /api/events: Recent coordinator events
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, HTTPException

if TYPE_CHECKING:
    from fastapi import FastAPI

    from routepause.core.coordinator import PauseResumeCoordinator
    from routepause.core.events import EventLog
    from routepause.player.registry import PlayerRegistry

logger = logging.getLogger(__name__)

router = APIRouter(tags=["api"])

# References set during route registration
_coordinator: PauseResumeCoordinator | None = None
_player_registry: PlayerRegistry | None = None
_managed_device: str = ""
_event_log: EventLog | None = None


def register_api_routes(
    app: FastAPI,
    coordinator: PauseResumeCoordinator,
    player_registry: PlayerRegistry,
    managed_device: str = "",
    event_log: EventLog | None = None,
) -> None:
    """
    Register API routes with the FastAPI app.

    Args:
        app: FastAPI application instance
        coordinator: Coordinator whose pauses are reported
        player_registry: Registry of known players
        managed_device: Name of the managed output device (informational)
        event_log: Recent events to serve, if the server keeps any
    """
    global _coordinator, _player_registry, _managed_device, _event_log
    _coordinator = coordinator
    _player_registry = player_registry
    _managed_device = managed_device
    _event_log = event_log
    app.include_router(router)


def _require() -> tuple[PauseResumeCoordinator, PlayerRegistry]:
    if _coordinator is None or _player_registry is None:
        raise HTTPException(status_code=503, detail="Server not initialized")
    return _coordinator, _player_registry


def _ordered_pauses(coordinator: PauseResumeCoordinator, registry: PlayerRegistry) -> list[str]:
    """Managed pauses in registration order."""
    pauses = coordinator.currently_managed_pauses()
    return [identity for identity in registry if identity in pauses]


# =============================================================================
# Status
# =============================================================================


@router.get("/api/status")
async def status() -> dict[str, Any]:
    """Get coordinator status."""
    coordinator, registry = _require()

    return {
        "server": "routepause",
        "state": coordinator.state.value,
        "autopause": coordinator.enabled,
        "managed_device": _managed_device,
        "players_known": len(registry),
        "pauses_pending": len(coordinator.currently_managed_pauses()),
    }


# =============================================================================
# Players
# =============================================================================


@router.get("/api/players")
async def list_players() -> dict[str, Any]:
    """List all known players with their live play state."""
    coordinator, registry = _require()

    states = await registry.play_states()
    pauses = coordinator.currently_managed_pauses()

    players = [
        {
            "identity": handle.identity,
            "name": handle.name,
            "state": states[handle.identity].value,
            "paused_by_system": handle.identity in pauses,
        }
        for handle in registry.all()
    ]

    return {"count": len(players), "players": players}


@router.get("/api/players/{identity}")
async def get_player(identity: str) -> dict[str, Any]:
    """Get one player. 404 if the identity is not known."""
    coordinator, registry = _require()

    handle = registry.get(identity)
    if handle is None:
        raise HTTPException(status_code=404, detail=f"Unknown player: {identity}")

    state = await handle.controller.get_play_state()
    return {
        "identity": handle.identity,
        "name": handle.name,
        "state": state.value,
        "paused_by_system": identity in coordinator.currently_managed_pauses(),
    }


# =============================================================================
# Pauses
# =============================================================================


@router.get("/api/pauses")
async def list_pauses() -> dict[str, Any]:
    """Players currently paused by the system."""
    coordinator, registry = _require()

    pauses = _ordered_pauses(coordinator, registry)
    return {"count": len(pauses), "players": pauses}


@router.post("/api/pauses/retry")
async def retry_pauses() -> dict[str, Any]:
    """Retry resuming players whose resume failed earlier."""
    coordinator, registry = _require()
    logger.info("Resume retry requested over HTTP")

    resumed = await coordinator.retry_pending()
    return {
        "resumed": [identity for identity in registry if identity in resumed],
        "pending": _ordered_pauses(coordinator, registry),
    }


@router.put("/api/autopause")
async def set_autopause(body: dict[str, Any]) -> dict[str, Any]:
    """Enable or disable pausing on engage. Body: {"enabled": bool}."""
    coordinator, _ = _require()

    enabled = body.get("enabled")
    if not isinstance(enabled, bool):
        raise HTTPException(status_code=400, detail="\"enabled\" must be true or false")

    coordinator.enabled = enabled
    return {"autopause": coordinator.enabled}


# =============================================================================
# Events
# =============================================================================


@router.get("/api/events")
async def list_events(limit: int = 50) -> dict[str, Any]:
    """
    Most recent coordinator events, oldest first.

    Args:
        limit: Maximum events to return (default: 50)
    """
    _require()

    events = _event_log.recent(limit) if _event_log is not None else []
    return {"count": len(events), "events": events}
