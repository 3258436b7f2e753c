"""Registry of live audio sessions for one peer."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from audio_echo.adapters.playback import Playback, PlaybackFactory
from audio_echo.domain.sessions import (
    DEFAULT_GROUP,
    IDENTITY_KEYS,
    AudioSession,
    PeerRole,
    PlaybackConfig,
)
from audio_echo.services.ids import generate_session_id, is_transient
from audio_echo.services.properties import resolve_property
from audio_echo.services.volumes import GroupVolumeTable

_logger = logging.getLogger(__name__)


@dataclass
class RegistryState:
    """Session and group volume state owned by a single peer."""

    role: PeerRole
    sessions: dict[str, AudioSession] = field(default_factory=dict)
    volumes: GroupVolumeTable = field(default_factory=GroupVolumeTable)
    started: bool = False

    @property
    def is_authoritative(self) -> bool:
        """Return True on the peer that broadcasts lifecycle notifications."""
        return self.role is PeerRole.AUTHORITATIVE


@dataclass
class SessionRegistry:
    """Creates, tracks and destroys audio sessions."""

    state: RegistryState
    playback_factory: PlaybackFactory
    default_parent: str = "master"
    default_volume: float = 1.0
    stop_notifier: Callable[[str], None] | None = None

    def start(self) -> None:
        """Initialize the registry; later calls are no-ops."""
        if self.state.started:
            return
        self.state.started = True
        self.set_volume(self.default_volume)
        _logger.info("Session registry started: role=%s", self.state.role)

    def shutdown(self) -> None:
        """Drop every local session without notifying other peers."""
        sessions = list(self.state.sessions.values())
        self.state.sessions.clear()
        for session in sessions:
            session.release()
            if session.playback is not None:
                session.playback.destroy()
        self.state.started = False
        _logger.info("Session registry shut down: dropped=%s", len(sessions))

    def create(
        self,
        config: PlaybackConfig,
        session_id: str | None = None,
        group: str | None = None,
    ) -> AudioSession:
        """Create a session with a concrete playback and start it."""
        if not isinstance(session_id, str):
            session_id = generate_session_id(config.audio_id)
        if not isinstance(group, str):
            group = DEFAULT_GROUP

        playback = self.playback_factory.create()
        playback.name = str(resolve_property(config, "name", session_id))
        playback.audio_id = config.audio_id
        playback.parent = str(resolve_property(config, "parent", self.default_parent))
        playback.volume = float(
            resolve_property(config, "volume", self.get_volume(group))
        )
        _copy_properties(playback, config)

        session = AudioSession(
            id=session_id, group=group, config=config, playback=playback
        )
        session.subscriptions.append(self._arm_termination(session, playback))

        playback.play()
        self._replace(session)
        return session

    def track(
        self,
        config: PlaybackConfig,
        session_id: str | None = None,
        group: str | None = None,
    ) -> AudioSession:
        """Record a persistent session that is played on dependent peers."""
        if not self.state.is_authoritative:
            raise RuntimeError("Only the authoritative peer tracks replicated sessions")
        if not isinstance(session_id, str):
            session_id = generate_session_id(config.audio_id)
        if not isinstance(group, str):
            group = DEFAULT_GROUP
        session = AudioSession(
            id=session_id, group=group, config=config, replicates=True
        )
        self._replace(session)
        return session

    def stop(self, session_id: str) -> None:
        """Stop and forget a session; unknown ids are ignored."""
        session = self.state.sessions.pop(session_id, None)
        if session is None:
            # No way to know whether a transient replica is still playing.
            if self.state.is_authoritative and is_transient(session_id):
                self._notify_stopped(session_id)
            return

        session.release()
        if session.playback is not None:
            session.playback.destroy()
        elif self.state.is_authoritative and session.replicates:
            self._notify_stopped(session_id)
        _logger.debug("Session stopped: id=%s group=%s", session_id, session.group)

    def set_volume(self, volume: float, group: str | None = None) -> None:
        """Set a group volume and apply it to every playing member."""
        resolved = self.state.volumes.set(volume, group)
        for session in self.state.sessions.values():
            if session.group != resolved or session.playback is None:
                continue
            session.playback.volume = volume

    def get_volume(self, group: str | None = None) -> float:
        """Return a group volume, or 0 for unknown groups."""
        return self.state.volumes.get(group)

    def get(self, session_id: str) -> AudioSession | None:
        """Return a live session by id, if present."""
        return self.state.sessions.get(session_id)

    def sessions(self) -> list[AudioSession]:
        """Return every live session."""
        return list(self.state.sessions.values())

    def persistent_sessions(self) -> list[AudioSession]:
        """Return sessions whose lifecycle is replicated to dependent peers."""
        return [session for session in self.state.sessions.values() if session.replicates]

    def _arm_termination(
        self, session: AudioSession, playback: Playback
    ) -> Callable[[], None]:
        session_id = session.id
        if session.config.destroy_on_ended and playback.looped is not True:
            return playback.on_ended(lambda: self.stop(session_id))

        # Looped audio never ends, so cleanup has to follow manual destruction.
        unsubscribe = playback.on_destroying(lambda: self.stop(session_id))
        if session.config.destroy_on_ended and playback.looped:
            _logger.warning(
                "destroy_on_ended has no effect on looped audio: id=%s audio_id=%s",
                session_id,
                session.config.audio_id,
            )
        return unsubscribe

    def _replace(self, session: AudioSession) -> None:
        previous = self.state.sessions.pop(session.id, None)
        if previous is not None:
            previous.release()
            if previous.playback is not None:
                previous.playback.destroy()
        self.state.sessions[session.id] = session

    def _notify_stopped(self, session_id: str) -> None:
        if self.stop_notifier is not None:
            self.stop_notifier(session_id)


def _copy_properties(playback: Playback, config: PlaybackConfig) -> None:
    """Apply pass-through properties the playback allows to be set."""
    allowed = playback.SETTABLE_PROPERTIES
    for name, value in config.properties.items():
        if name in IDENTITY_KEYS or name not in allowed:
            _logger.debug("Skipping unsupported playback property: %s", name)
            continue
        try:
            setattr(playback, name, value)
        except (AttributeError, TypeError, ValueError):
            _logger.warning("Rejected playback property: %s=%r", name, value)
