"""Session lifecycle replication between authoritative and dependent peers."""

import logging
from dataclasses import dataclass, field
from functools import partial

from audio_echo.adapters.transport import ReplicationBroadcaster, ReplicationChannel
from audio_echo.domain.sessions import DEFAULT_GROUP, PlaybackConfig, SessionStarted
from audio_echo.services.ids import generate_session_id, transient_session_id
from audio_echo.services.queue import PendingQueue
from audio_echo.services.registry import SessionRegistry
from audio_echo.signals import Unsubscribe

_logger = logging.getLogger(__name__)


@dataclass
class AuthoritativeReplication:
    """Originates playback and tells dependent peers about it."""

    registry: SessionRegistry
    queue: PendingQueue
    broadcaster: ReplicationBroadcaster

    def __post_init__(self) -> None:
        if not self.registry.state.is_authoritative:
            raise RuntimeError("AuthoritativeReplication needs an authoritative registry")
        self.registry.stop_notifier = self.broadcaster.broadcast_stopped

    def start(self) -> None:
        """Start the registry and drain buffered play requests."""
        self.registry.start()
        self.queue.start()

    def play(
        self,
        config: PlaybackConfig,
        session_id: str | None = None,
        group: str | None = None,
    ) -> str:
        """Play audio on this peer only and return the session id."""
        return self.queue.play(config, session_id, group)

    def replicate(
        self,
        config: PlaybackConfig,
        session_id: str | None = None,
        group: str | None = None,
        persistent: bool = True,
    ) -> str:
        """Play audio on every dependent peer and return the session id.

        Before ``start()`` the request is buffered in the pending queue like a
        local play, so nothing is tracked or broadcast until the peer starts.
        """
        resolved_group = group if isinstance(group, str) else DEFAULT_GROUP
        if isinstance(session_id, str):
            resolved_id = session_id
        elif persistent:
            resolved_id = generate_session_id(config.audio_id)
        else:
            resolved_id = transient_session_id(config.audio_id)
        self.queue.submit(
            resolved_id,
            partial(self._announce, config, resolved_id, resolved_group, persistent),
        )
        return resolved_id

    def _announce(
        self, config: PlaybackConfig, session_id: str, group: str, persistent: bool
    ) -> None:
        if persistent:
            self.registry.track(config, session_id, group)
        self.broadcaster.broadcast_started(
            SessionStarted(session_id=session_id, group=group, config=config)
        )
        _logger.info(
            "Replicated session: id=%s group=%s persistent=%s",
            session_id,
            group,
            persistent,
        )

    def stop(self, session_id: str) -> None:
        """Stop a session locally and on dependent peers when replicated."""
        self.queue.cancel(session_id)
        self.registry.stop(session_id)

    def handle_catch_up(self, peer_id: str) -> int:
        """Resend every persistent session to a joining peer."""
        sessions = self.registry.persistent_sessions()
        for session in sessions:
            self.broadcaster.send_started(
                peer_id,
                SessionStarted(
                    session_id=session.id, group=session.group, config=session.config
                ),
            )
        _logger.info("Catch-up sent: peer_id=%s sessions=%s", peer_id, len(sessions))
        return len(sessions)

    def shutdown(self) -> None:
        """Drop local sessions."""
        self.registry.shutdown()


@dataclass
class DependentReplication:
    """Mirrors sessions announced by the authoritative peer."""

    registry: SessionRegistry
    queue: PendingQueue
    channel: ReplicationChannel
    _subscriptions: list[Unsubscribe] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.registry.state.is_authoritative:
            raise RuntimeError("DependentReplication needs a dependent registry")

    @property
    def started(self) -> bool:
        """Return True once listeners are installed."""
        return bool(self._subscriptions)

    def start(self) -> None:
        """Start locally, request catch-up once and listen for notifications."""
        if self.started:
            return
        self.registry.start()
        self.queue.start()
        self._subscriptions.append(self.channel.on_started(self.handle_started))
        self._subscriptions.append(self.channel.on_stopped(self.handle_stopped))
        self.channel.request_catch_up()

    def play(
        self,
        config: PlaybackConfig,
        session_id: str | None = None,
        group: str | None = None,
    ) -> str:
        """Play audio on this peer only and return the session id."""
        return self.queue.play(config, session_id, group)

    def stop(self, session_id: str) -> None:
        """Stop a local session."""
        self.queue.cancel(session_id)
        self.registry.stop(session_id)

    def handle_started(self, notification: SessionStarted) -> None:
        """Realize a replicated session locally."""
        self.registry.create(
            notification.config, notification.session_id, notification.group
        )

    def handle_stopped(self, session_id: str) -> None:
        """Mirror a replicated stop; unknown ids are ignored."""
        self.registry.stop(session_id)

    def shutdown(self) -> None:
        """Stop listening and drop local copies without touching the authority."""
        subscriptions, self._subscriptions = self._subscriptions, []
        for unsubscribe in subscriptions:
            unsubscribe()
        self.registry.shutdown()
