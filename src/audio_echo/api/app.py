"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status

from audio_echo.api.models import PlayRequest, SessionView, VolumeUpdate
from audio_echo.api.replication import router as replication_router
from audio_echo.app_logging import configure_logging
from audio_echo.containers import AppContainer
from audio_echo.services.replication import AuthoritativeReplication


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await app.state.container.start_resources()
        logger.info(
            "Peer started: peer_id=%s role=%s",
            container.settings.peer_id,
            container.settings.peer_role,
        )
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(replication_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/sessions")
    async def play(payload: PlayRequest, request: Request) -> dict[str, str]:
        """Start a session on this peer or replicate it to dependents."""
        state_container: AppContainer = request.app.state.container
        replication = state_container.replication
        config = payload.config.to_domain()
        if payload.replicate:
            if not isinstance(replication, AuthoritativeReplication):
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="Only the authoritative peer replicates sessions.",
                )
            session_id = replication.replicate(
                config, payload.id, payload.group, persistent=payload.persistent
            )
        else:
            session_id = replication.play(config, payload.id, payload.group)
        return {"id": session_id}

    @app.get("/sessions")
    async def list_sessions(request: Request) -> dict[str, object]:
        """Return every live session on this peer."""
        state_container: AppContainer = request.app.state.container
        sessions = state_container.registry.sessions()
        return {
            "sessions": [
                SessionView.from_session(session).model_dump() for session in sessions
            ]
        }

    @app.delete("/sessions/{session_id}")
    async def stop(session_id: str, request: Request) -> dict[str, str]:
        """Stop a session; unknown ids succeed."""
        state_container: AppContainer = request.app.state.container
        state_container.replication.stop(session_id)
        return {"status": "ok"}

    @app.get("/volumes/{group}")
    async def get_volume(group: str, request: Request) -> dict[str, object]:
        """Return a group volume."""
        state_container: AppContainer = request.app.state.container
        return {"group": group, "volume": state_container.registry.get_volume(group)}

    @app.put("/volumes/{group}")
    async def set_volume(
        group: str, payload: VolumeUpdate, request: Request
    ) -> dict[str, object]:
        """Change a group volume for current and future sessions."""
        state_container: AppContainer = request.app.state.container
        state_container.registry.set_volume(payload.volume, group)
        return {"group": group, "volume": payload.volume}

    return app
