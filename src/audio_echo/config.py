"""Application configuration."""

import os

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from audio_echo.domain.sessions import PeerRole

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

AUTHORITATIVE_PEER_ID = "authoritative"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    peer_role: PeerRole = PeerRole.AUTHORITATIVE
    peer_id: str = AUTHORITATIVE_PEER_ID
    authoritative_url: str = "http://localhost:8000"
    public_url: str | None = None
    default_volume: float = 1.0
    default_parent: str = "master"
    notification_timeout_seconds: float = 5.0
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @model_validator(mode="after")
    def _check_dependent_identity(self) -> "Settings":
        if self.peer_role is not PeerRole.DEPENDENT:
            return self
        if not self.public_url:
            raise ValueError("public_url is required for a dependent peer")
        if self.peer_id == AUTHORITATIVE_PEER_ID:
            raise ValueError("a dependent peer needs its own peer_id")
        return self


def callback_url(settings: Settings) -> str:
    """Return the base URL other peers use to reach this peer."""
    if settings.peer_role is PeerRole.DEPENDENT:
        base = settings.public_url or ""
    else:
        base = settings.public_url or settings.authoritative_url
    return base.rstrip("/")
