"""Replication endpoints exchanged between peers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException, Request, status

from audio_echo.api.models import (
    CatchUpRequest,
    SessionStartedModel,
    SessionStoppedModel,
)
from audio_echo.services.replication import (
    AuthoritativeReplication,
    DependentReplication,
)

if TYPE_CHECKING:
    from audio_echo.containers import AppContainer

router = APIRouter(prefix="/replication", tags=["replication"])


def _authoritative(request: Request) -> AppContainer:
    container: AppContainer = request.app.state.container
    if (
        not isinstance(container.replication, AuthoritativeReplication)
        or container.broadcaster is None
    ):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return container


def _dependent(request: Request) -> AppContainer:
    container: AppContainer = request.app.state.container
    if (
        not isinstance(container.replication, DependentReplication)
        or container.channel is None
    ):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return container


@router.post("/catch-up")
async def catch_up(payload: CatchUpRequest, request: Request) -> dict[str, object]:
    """Register a dependent peer and resend active persistent sessions."""
    container = _authoritative(request)
    container.broadcaster.register_peer(payload.peer_id, str(payload.callback_url))
    sent = container.replication.handle_catch_up(payload.peer_id)
    return {"status": "ok", "sessions": sent}


@router.delete("/peers/{peer_id}")
async def remove_peer(peer_id: str, request: Request) -> dict[str, object]:
    """Stop sending notifications to a dependent peer."""
    container = _authoritative(request)
    removed = container.broadcaster.unregister_peer(peer_id)
    return {"status": "ok", "removed": removed}


@router.post("/started")
async def session_started(
    payload: SessionStartedModel, request: Request
) -> dict[str, str]:
    """Receive a start notification from the authoritative peer."""
    container = _dependent(request)
    container.channel.dispatch_started(payload.to_domain())
    return {"status": "ok"}


@router.post("/stopped")
async def session_stopped(
    payload: SessionStoppedModel, request: Request
) -> dict[str, str]:
    """Receive a stop notification from the authoritative peer."""
    container = _dependent(request)
    container.channel.dispatch_stopped(payload.session_id)
    return {"status": "ok"}
