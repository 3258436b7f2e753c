"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from audio_echo.adapters.playback import HeadlessPlaybackFactory, PlaybackFactory
from audio_echo.adapters.transport import (
    HttpxReplicationBroadcaster,
    HttpxReplicationChannel,
)
from audio_echo.config import Settings, callback_url
from audio_echo.domain.sessions import PeerRole
from audio_echo.services.queue import PendingQueue
from audio_echo.services.registry import RegistryState, SessionRegistry
from audio_echo.services.replication import (
    AuthoritativeReplication,
    DependentReplication,
)


@dataclass
class AppContainer:
    """Holds peer-wide dependencies."""

    settings: Settings
    registry: SessionRegistry
    queue: PendingQueue
    replication: AuthoritativeReplication | DependentReplication
    start_resources: Callable[[], Awaitable[None]]
    close_resources: Callable[[], Awaitable[None]]
    broadcaster: HttpxReplicationBroadcaster | None = None
    channel: HttpxReplicationChannel | None = None


def build_container(
    settings: Settings | None = None,
    playback_factory: PlaybackFactory | None = None,
) -> AppContainer:
    """Create the default dependency container for the configured role."""
    resolved_settings = settings or Settings()
    registry = SessionRegistry(
        state=RegistryState(role=resolved_settings.peer_role),
        playback_factory=playback_factory or HeadlessPlaybackFactory(),
        default_parent=resolved_settings.default_parent,
        default_volume=resolved_settings.default_volume,
    )
    queue = PendingQueue(registry)
    timeout = resolved_settings.notification_timeout_seconds

    if resolved_settings.peer_role is PeerRole.AUTHORITATIVE:
        broadcaster = HttpxReplicationBroadcaster.create(timeout=timeout)
        replication = AuthoritativeReplication(registry, queue, broadcaster)

        async def start_authoritative() -> None:
            await broadcaster.start()
            replication.start()

        async def close_authoritative() -> None:
            replication.shutdown()
            await broadcaster.close()

        return AppContainer(
            settings=resolved_settings,
            registry=registry,
            queue=queue,
            replication=replication,
            start_resources=start_authoritative,
            close_resources=close_authoritative,
            broadcaster=broadcaster,
        )

    channel = HttpxReplicationChannel.create(
        authoritative_url=resolved_settings.authoritative_url,
        peer_id=resolved_settings.peer_id,
        callback_url=callback_url(resolved_settings),
        timeout=timeout,
    )
    dependent = DependentReplication(registry, queue, channel)

    async def start_dependent() -> None:
        await channel.start()
        dependent.start()

    async def close_dependent() -> None:
        dependent.shutdown()
        await channel.close()

    return AppContainer(
        settings=resolved_settings,
        registry=registry,
        queue=queue,
        replication=dependent,
        start_resources=start_dependent,
        close_resources=close_dependent,
        channel=channel,
    )
