"""Pydantic models for the session and replication HTTP payloads."""

from pydantic import AnyHttpUrl, BaseModel, Field

from audio_echo.domain.sessions import AudioSession, PlaybackConfig, SessionStarted


class PlaybackConfigModel(BaseModel):
    """Play request configuration payload."""

    audio_id: str
    destroy_on_ended: bool = True
    volume: float | None = None
    parent: str | None = None
    name: str | None = None
    properties: dict[str, object] = Field(default_factory=dict)

    def to_domain(self) -> PlaybackConfig:
        """Convert to the domain config."""
        return PlaybackConfig.from_payload(self.model_dump())


class PlayRequest(BaseModel):
    """Request to start a session."""

    config: PlaybackConfigModel
    id: str | None = None
    group: str | None = None
    replicate: bool = False
    persistent: bool = True


class SessionView(BaseModel):
    """Public view of a live session."""

    id: str
    group: str
    audio_id: str
    replicates: bool
    local: bool
    volume: float | None = None

    @classmethod
    def from_session(cls, session: AudioSession) -> "SessionView":
        """Build a view from a registry session."""
        return cls(
            id=session.id,
            group=session.group,
            audio_id=session.config.audio_id,
            replicates=session.replicates,
            local=session.playback is not None,
            volume=session.playback.volume if session.playback is not None else None,
        )


class VolumeUpdate(BaseModel):
    """Request to change a group volume."""

    volume: float


class SessionStartedModel(BaseModel):
    """Replicated start notification."""

    session_id: str
    group: str
    config: PlaybackConfigModel

    def to_domain(self) -> SessionStarted:
        """Convert to the domain notification."""
        return SessionStarted(
            session_id=self.session_id,
            group=self.group,
            config=self.config.to_domain(),
        )


class SessionStoppedModel(BaseModel):
    """Replicated stop notification."""

    session_id: str


class CatchUpRequest(BaseModel):
    """Dependent peer asking for active persistent sessions."""

    peer_id: str
    callback_url: AnyHttpUrl
